"""
Unit Tests for Proxy Routes
============================

Tests for luis_proxy/app/proxy/routes.py

Test Coverage:
--------------
1. Outbound URL, method and headers per route
2. Body pass-through (byte-for-byte), form bodies, empty bodies, size limit
3. Subscription key handling (attached, omitted for /parse, assigned key body)
4. Status-based vs blind-parse success detection
5. Failure mapping to 500 {"status": 500, "message": ...}

Run tests:
----------
    pytest luis_proxy/app/tests/test_proxy.py -v
"""

import json

import httpx
from fastapi import status


KEY_HEADER = "Ocp-Apim-Subscription-Key"


# ============================================================================
# Import App
# ============================================================================

def test_import_relays_text_body_unchanged(client, backend, test_settings):
    """Backend 201 with a text body is relayed as 200 with the same body"""
    backend.handler = lambda request: httpx.Response(201, text="abc123")

    response = client.post("/apps/MyApp", json={"name": "MyApp"})

    assert response.status_code == status.HTTP_200_OK
    assert response.text == "abc123"

    outbound = backend.last
    assert outbound.method == "POST"
    assert outbound.url.path == "/luis/api/v2.0/apps/import"
    assert outbound.url.params["appName"] == "MyApp"
    assert outbound.headers[KEY_HEADER] == test_settings.LUIS_APP_KEY
    assert outbound.headers["Content-Type"] == "application/json"
    assert outbound.headers["Accept"] == "application/json"


def test_import_backend_401_returns_500(client, backend):
    backend.handler = lambda request: httpx.Response(401, json={"error": "denied"})

    response = client.post("/apps/MyApp", json={"name": "MyApp"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error importing workspace"}


def test_import_forwards_body_byte_for_byte(client, backend):
    raw = b'{ "name" : "Pizza",\n  "utterances": [ {"text": "hi", "intent": "Greet"} ] }'
    backend.handler = lambda request: httpx.Response(201, text='"new-app-id"')

    response = client.post(
        "/apps/Pizza",
        content=raw,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.text == '"new-app-id"'
    assert backend.last.content == raw


def test_import_app_name_is_query_encoded(client, backend):
    backend.handler = lambda request: httpx.Response(201, text='"id"')

    client.post("/apps/My%20App", json={})

    assert backend.last.url.params["appName"] == "My App"


def test_import_malformed_body_is_forwarded(client, backend):
    """No schema validation: the backend decides what is malformed"""
    backend.handler = lambda request: httpx.Response(400, json={"error": "bad app"})

    response = client.post(
        "/apps/Broken",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert backend.last.content == b"{not json"
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["message"] == "Error importing workspace"


# ============================================================================
# Add Examples
# ============================================================================

def test_examples_targets_configured_app_version(client, backend, test_settings):
    examples = [
        {
            "text": "book a flight to paris",
            "intentName": "BookFlight",
            "entityLabels": [
                {"startCharIndex": 17, "endCharIndex": 21, "entityName": "City"}
            ],
        }
    ]
    backend.handler = lambda request: httpx.Response(201, json=[{"value": {"ExampleId": 1}}])

    response = client.post("/examples", json=examples)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [{"value": {"ExampleId": 1}}]

    outbound = backend.last
    assert str(outbound.url) == (
        f"{test_settings.LUIS_SERVER_URL}/{test_settings.LUIS_APP_ID}/versions/0.1/examples"
    )
    assert json.loads(outbound.content) == examples
    assert outbound.headers[KEY_HEADER] == test_settings.LUIS_APP_KEY


def test_examples_relays_json_error_body_with_200(client, backend):
    """Blind-parse routes relay whatever JSON the backend sent, whatever its status"""
    error_body = {"error": {"code": "BadArgument", "message": "Invalid example"}}
    backend.handler = lambda request: httpx.Response(400, json=error_body)

    response = client.post("/examples", json=[])

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == error_body


def test_examples_non_json_body_returns_500(client, backend):
    backend.handler = lambda request: httpx.Response(502, text="<html>Bad Gateway</html>")

    response = client.post("/examples", json=[])

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error posting training data"}


# ============================================================================
# Training
# ============================================================================

def test_post_train_uses_configured_app_id(client, backend, test_settings):
    backend.handler = lambda request: httpx.Response(202, json={"statusId": 9, "status": "Queued"})

    response = client.post("/train")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"statusId": 9, "status": "Queued"}

    outbound = backend.last
    assert outbound.method == "POST"
    assert str(outbound.url) == (
        f"{test_settings.LUIS_SERVER_URL}/{test_settings.LUIS_APP_ID}/versions/0.1/train"
    )
    assert outbound.content == b""
    assert outbound.headers[KEY_HEADER] == test_settings.LUIS_APP_KEY


def test_get_train_uses_path_app_id(client, backend, test_settings):
    backend.handler = lambda request: httpx.Response(200, json=[{"modelId": "m1"}])

    response = client.get("/train/other-app")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [{"modelId": "m1"}]

    outbound = backend.last
    assert outbound.method == "GET"
    assert str(outbound.url) == f"{test_settings.LUIS_SERVER_URL}/other-app/versions/0.1/train"


def test_post_train_with_path_app_id(client, backend, test_settings):
    client.post("/train/other-app")

    assert backend.last.method == "POST"
    assert str(backend.last.url) == f"{test_settings.LUIS_SERVER_URL}/other-app/versions/0.1/train"


def test_train_url_follows_config_update(client, backend):
    client.post("/config", json={"url": "http://other.test/apps", "appId": "new-app"})

    client.get("/train")
    assert str(backend.last.url) == "http://other.test/apps/new-app/versions/0.1/train"

    client.post("/train")
    assert str(backend.last.url) == "http://other.test/apps/new-app/versions/0.1/train"


def test_train_status_failure_message(client, backend):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    backend.handler = refuse

    get_response = client.get("/train")
    post_response = client.post("/train")

    assert get_response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert get_response.json()["message"] == "Error getting training status"
    assert post_response.json()["message"] == "Error posting train command"


def test_non_ascii_app_key_returns_route_error(client, backend):
    client.post("/config", json={"appKey": "clé-secrète"})

    response = client.get("/train")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error getting training status"}
    assert backend.requests == []


# ============================================================================
# Publish
# ============================================================================

def test_publish_forwards_body_to_app(client, backend, test_settings):
    payload = {"versionId": "0.1", "isStaging": False, "region": "westus"}
    backend.handler = lambda request: httpx.Response(201, json={"endpointUrl": "https://x"})

    response = client.post("/publish/pub-app", json=payload)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"endpointUrl": "https://x"}
    assert str(backend.last.url) == f"{test_settings.LUIS_SERVER_URL}/pub-app/publish"
    assert json.loads(backend.last.content) == payload


def test_publish_network_error_returns_500(client, backend):
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    backend.handler = timeout

    response = client.post("/publish/pub-app", json={})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error publishing workspace"}


# ============================================================================
# Assign Key
# ============================================================================

def test_assign_key_sends_json_encoded_key(client, backend, test_settings):
    backend.handler = lambda request: httpx.Response(201)

    response = client.post("/assignedkey/key-app", json={"ignored": "body"})

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b""

    outbound = backend.last
    assert str(outbound.url) == f"{test_settings.LUIS_SERVER_URL}/key-app/versions/0.1/assignedkey"
    assert outbound.content == json.dumps(test_settings.LUIS_APP_KEY).encode()
    assert outbound.headers[KEY_HEADER] == test_settings.LUIS_APP_KEY


def test_assign_key_uses_updated_key(client, backend):
    backend.handler = lambda request: httpx.Response(201)
    client.post("/config", json={"appKey": "rotated-key"})

    client.post("/assignedkey/key-app")

    assert backend.last.content == b'"rotated-key"'
    assert backend.last.headers[KEY_HEADER] == "rotated-key"


def test_assign_key_backend_error_returns_500(client, backend):
    backend.handler = lambda request: httpx.Response(403, json={"error": "forbidden"})

    response = client.post("/assignedkey/key-app")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error assigning key"}


# ============================================================================
# Parse
# ============================================================================

def test_parse_omits_subscription_key(client, backend, test_settings):
    parse_result = {
        "text": "hello there",
        "intent": {"name": "greet", "confidence": 0.93},
        "entities": [],
        "intent_ranking": [{"name": "greet", "confidence": 0.93}],
    }
    backend.handler = lambda request: httpx.Response(200, json=parse_result)

    response = client.post("/parse", json={"q": "hello there"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == parse_result

    outbound = backend.last
    assert str(outbound.url) == f"{test_settings.LUIS_SERVER_URL}/parse"
    assert KEY_HEADER not in outbound.headers
    assert outbound.headers["Content-Type"] == "application/json"
    assert outbound.headers["Accept"] == "application/json"
    assert json.loads(outbound.content) == {"q": "hello there"}


def test_parse_failure_message(client, backend):
    backend.handler = lambda request: httpx.Response(500, text="Internal Server Error")

    response = client.post("/parse", json={"q": "hi"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error posting query"}


def test_parse_nan_in_backend_json_returns_500(client, backend):
    backend.handler = lambda request: httpx.Response(
        200,
        content=b'{"intent": {"name": "greet", "confidence": NaN}}',
        headers={"Content-Type": "application/json"},
    )

    response = client.post("/parse", json={"q": "hi"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"status": 500, "message": "Error posting query"}


def test_error_detail_is_not_leaked(client, backend):
    def refuse(request):
        raise httpx.ConnectError("secret-host:9999 refused", request=request)

    backend.handler = refuse

    response = client.post("/parse", json={"q": "hi"})

    assert "secret-host" not in response.text


# ============================================================================
# Inbound Body Handling
# ============================================================================

def test_empty_body_is_forwarded_as_empty_object(client, backend):
    client.post("/publish/pub-app")

    assert backend.last.content == b"{}"


def test_form_body_is_converted_to_json(client, backend):
    client.post(
        "/parse",
        content=b"q=turn+on+the+lights&project=home",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert json.loads(backend.last.content) == {"q": "turn on the lights", "project": "home"}


def test_form_body_keeps_blank_and_repeated_fields(client, backend):
    client.post(
        "/examples",
        content=b"q=&tag=a&tag=b&tag=c&project=home",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert json.loads(backend.last.content) == {
        "q": "",
        "tag": ["a", "b", "c"],
        "project": "home",
    }


def test_oversized_body_is_rejected(client, backend, test_settings):
    oversized = b"[" + b"1," * test_settings.MAX_BODY_BYTES + b"1]"

    response = client.post(
        "/examples",
        content=oversized,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert backend.requests == []
