"""Console sender adapter for dry runs.

Mental model refresher:
- This is outbound adapter code, swapped in for SES when the debug flag is on.
- It prints what would have been sent and reports every destination as sent.
"""

from __future__ import annotations

from ..types import OUTCOME_SUCCESS, BulkRequest, DispatchOutcome

DRY_RUN_STATUS = "DRY_RUN"


def send_bulk_via_console(
    request: BulkRequest,
    *,
    configuration_set: str,
    source: str,
) -> DispatchOutcome:
    destinations = list(request["destinations"])

    print("[BULK EMAIL]")
    print(f"template={request['template']}")
    print(f"configuration_set={configuration_set}")
    print(f"source={source}")
    print(f"default_template_data={request['default_template_data']}")
    print(f"destinations={len(destinations)}")
    for index, destination in enumerate(destinations, start=1):
        print(f"  {index}. to={destination['to_address']} data={destination['template_data']}")
    print("")

    return {
        "status": OUTCOME_SUCCESS,
        "destination_statuses": [DRY_RUN_STATUS] * len(destinations),
    }
