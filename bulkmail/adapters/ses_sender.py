"""Amazon SES adapter for bulk templated sends.

Mental model refresher:
- This module is an outbound adapter.
- It turns one bulk request description into a `send_bulk_templated_email`
  call and turns whatever comes back into a plain outcome dictionary.
- Application code only sees the `send_bulk(request) -> outcome` callable; it
  never imports boto3 or handles botocore exceptions.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectionError as BotocoreConnectionError,
    ConnectTimeoutError,
    HTTPClientError,
    ReadTimeoutError,
)

from ..domain.records import RequestKind
from ..types import (
    OUTCOME_SERVICE_ERROR,
    OUTCOME_SUCCESS,
    OUTCOME_TIMEOUT,
    OUTCOME_TRANSPORT_FAILURE,
    OUTCOME_UNKNOWN,
    BulkRequest,
    DispatchOutcome,
    HttpCapture,
    Settings,
)

logger = logging.getLogger(__name__)

OPERATION_NAME = "SendBulkTemplatedEmail"
DEFAULT_REGION = "us-east-1"

# Only recovery mails carry a reply-to; activation mails are no-reply.
REPLY_TO_KINDS = frozenset({RequestKind.PASSWORD_RECOVERY})


def build_ses_client(settings: Settings) -> Any:
    """Create an SES client with explicit timeouts and a single attempt.

    Failed dispatches are never retried, neither here nor by botocore.
    """
    boto_config = Config(
        region_name=settings.get("region") or DEFAULT_REGION,
        retries={"total_max_attempts": 1, "mode": "standard"},
        connect_timeout=settings.get("connect_timeout_seconds", 10),
        read_timeout=settings.get("read_timeout_seconds", 30),
    )
    endpoint_url = settings.get("endpoint_url")
    if endpoint_url:
        client = boto3.client("ses", endpoint_url=endpoint_url, config=boto_config)
        logger.info("Created SES client for endpoint: %s", endpoint_url)
    else:
        client = boto3.client("ses", config=boto_config)
        logger.info("Created SES client in region: %s", boto_config.region_name)
    return client


def build_send_params(
    request: BulkRequest,
    *,
    configuration_set: str,
    source: str,
    reply_to: Sequence[str] = (),
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "Source": source,
        "Template": request["template"],
        "ConfigurationSetName": configuration_set,
        "DefaultTemplateData": request["default_template_data"],
        "Destinations": [
            {
                "Destination": {"ToAddresses": [destination["to_address"]]},
                "ReplacementTemplateData": destination["template_data"],
            }
            for destination in request["destinations"]
        ],
    }
    if reply_to and request["kind"] in REPLY_TO_KINDS:
        params["ReplyToAddresses"] = list(reply_to)
    return params


class SesBulkSender:
    """Callable sender backed by a boto3 SES client.

    The raw HTTP response of every call is captured through botocore's
    `before-parse` event, so a service error can be written out verbatim even
    when its body is not the XML botocore expects.
    """

    def __init__(
        self,
        client: Any,
        *,
        configuration_set: str,
        source: str,
        reply_to: Sequence[str] = (),
    ) -> None:
        self.client = client
        self.configuration_set = configuration_set
        self.source = source
        self.reply_to = tuple(reply_to)
        self._last_http: HttpCapture | None = None
        client.meta.events.register(
            f"before-parse.ses.{OPERATION_NAME}", self._remember_http_response
        )

    def __call__(self, request: BulkRequest) -> DispatchOutcome:
        self._last_http = None
        params = build_send_params(
            request,
            configuration_set=self.configuration_set,
            source=self.source,
            reply_to=self.reply_to,
        )

        try:
            response = self.client.send_bulk_templated_email(**params)
        except ClientError as exc:
            return {
                "status": OUTCOME_SERVICE_ERROR,
                "http": self._last_http or _http_from_client_error(exc),
                "error": _client_error_text(exc),
            }
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            return {"status": OUTCOME_TIMEOUT, "error": str(exc)}
        except (BotocoreConnectionError, HTTPClientError) as exc:
            return {"status": OUTCOME_TRANSPORT_FAILURE, "error": str(exc)}
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            # An error response botocore could not parse (ResponseParserError).
            if self._last_http is not None and _is_error_status(self._last_http):
                return {"status": OUTCOME_SERVICE_ERROR, "http": self._last_http, "error": error}
            return {"status": OUTCOME_UNKNOWN, "error": error}

        return {
            "status": OUTCOME_SUCCESS,
            "destination_statuses": [
                item.get("Status", "UNKNOWN") for item in response.get("Status", [])
            ],
            "response": response,
        }

    def _remember_http_response(
        self, response_dict: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> None:
        if response_dict is None:
            return
        headers = response_dict.get("headers") or {}
        body = response_dict.get("body")
        self._last_http = {
            "status_code": response_dict.get("status_code"),
            "headers": list(headers.items()),
            "body": bytes(body) if isinstance(body, (bytes, bytearray)) and body else None,
        }


def _is_error_status(http: HttpCapture) -> bool:
    status_code = http.get("status_code")
    return isinstance(status_code, int) and status_code >= 300


def _http_from_client_error(exc: ClientError) -> HttpCapture:
    metadata: Mapping[str, Any] = exc.response.get("ResponseMetadata", {}) or {}
    headers = metadata.get("HTTPHeaders", {}) or {}
    return {
        "status_code": metadata.get("HTTPStatusCode"),
        "headers": list(headers.items()),
        "body": None,
    }


def _client_error_text(exc: ClientError) -> str:
    error = exc.response.get("Error", {}) or {}
    code = error.get("Code", "Unknown")
    message = error.get("Message", "")
    return f"{code}: {message}" if message else str(code)
