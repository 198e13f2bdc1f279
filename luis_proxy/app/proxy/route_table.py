"""
Static description of every backend route the proxy forwards to.

Each BackendRoute says where the call goes, what it carries and how its
outcome is judged. The table is built at import time and never changes.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping


class SuccessMode(str, Enum):
    """How a backend response is judged."""

    # Any non-2xx status is a failure
    STATUS = "status"
    # The body is parsed as JSON whatever the status; a parse error is a failure
    BLIND_PARSE = "blind_parse"


class ResponseMode(str, Enum):
    """What the proxy writes back on success."""

    RAW = "raw"
    JSON = "json"
    EMPTY = "empty"


class BodyMode(str, Enum):
    """What the proxy sends as the outbound body."""

    NONE = "none"
    INBOUND = "inbound"
    APP_KEY = "app_key"


@dataclass(frozen=True)
class BackendRoute:
    """
    One entry of the route table.

    Attributes:
        name: Operation name used in logs
        method: Outbound HTTP method
        target: URL template; may use {base_url}, {app_id} and {version_id}
        body: Outbound body policy
        subscription_key: Whether to attach Ocp-Apim-Subscription-Key
        success: Success-detection mode
        response: Success response mode
        error_message: Message returned to the caller on failure
    """

    name: str
    method: str
    target: str
    body: BodyMode
    subscription_key: bool
    success: SuccessMode
    response: ResponseMode
    error_message: str

    def build_url(self, base_url: str, app_id: str, version_id: str) -> str:
        return self.target.format(
            base_url=base_url,
            app_id=app_id,
            version_id=version_id,
        )


IMPORT_APP = BackendRoute(
    name="import_app",
    method="POST",
    target="{base_url}/import",
    body=BodyMode.INBOUND,
    subscription_key=True,
    success=SuccessMode.STATUS,
    response=ResponseMode.RAW,
    error_message="Error importing workspace",
)

ADD_EXAMPLES = BackendRoute(
    name="add_examples",
    method="POST",
    target="{base_url}/{app_id}/versions/{version_id}/examples",
    body=BodyMode.INBOUND,
    subscription_key=True,
    success=SuccessMode.BLIND_PARSE,
    response=ResponseMode.JSON,
    error_message="Error posting training data",
)

START_TRAINING = BackendRoute(
    name="start_training",
    method="POST",
    target="{base_url}/{app_id}/versions/{version_id}/train",
    body=BodyMode.NONE,
    subscription_key=True,
    success=SuccessMode.BLIND_PARSE,
    response=ResponseMode.JSON,
    error_message="Error posting train command",
)

TRAINING_STATUS = BackendRoute(
    name="training_status",
    method="GET",
    target="{base_url}/{app_id}/versions/{version_id}/train",
    body=BodyMode.NONE,
    subscription_key=True,
    success=SuccessMode.BLIND_PARSE,
    response=ResponseMode.JSON,
    error_message="Error getting training status",
)

PUBLISH = BackendRoute(
    name="publish",
    method="POST",
    target="{base_url}/{app_id}/publish",
    body=BodyMode.INBOUND,
    subscription_key=True,
    success=SuccessMode.BLIND_PARSE,
    response=ResponseMode.JSON,
    error_message="Error publishing workspace",
)

ASSIGN_KEY = BackendRoute(
    name="assign_key",
    method="POST",
    target="{base_url}/{app_id}/versions/{version_id}/assignedkey",
    body=BodyMode.APP_KEY,
    subscription_key=True,
    success=SuccessMode.STATUS,
    response=ResponseMode.EMPTY,
    error_message="Error assigning key",
)

# Self-hosted Rasa backend: no subscription key
PARSE = BackendRoute(
    name="parse",
    method="POST",
    target="{base_url}/parse",
    body=BodyMode.INBOUND,
    subscription_key=False,
    success=SuccessMode.BLIND_PARSE,
    response=ResponseMode.JSON,
    error_message="Error posting query",
)


ROUTES: Mapping[str, BackendRoute] = MappingProxyType({
    route.name: route
    for route in (
        IMPORT_APP,
        ADD_EXAMPLES,
        START_TRAINING,
        TRAINING_STATUS,
        PUBLISH,
        ASSIGN_KEY,
        PARSE,
    )
})


def build_headers(route: BackendRoute, app_key: str) -> Dict[str, str]:
    """
    Build the outbound headers for a route.

    Args:
        route: Route being called
        app_key: Current subscription key

    Returns:
        Headers dict for the backend request
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if route.subscription_key:
        headers["Ocp-Apim-Subscription-Key"] = app_key
    return headers
