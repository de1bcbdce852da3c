import pytest
import requests

from devicedb_sdk.api_client import (
    DeviceDBClient,
    create_client,
    decode_key,
    decode_key_bytes,
    encode_key,
)
from devicedb_sdk.config import ClientConfig
from devicedb_sdk.errors import (
    ResponseParseError,
    ServerError,
    UnexpectedResponseError,
    ValidationError,
)
from devicedb_sdk.http_models import DBObject

from support import Collector, DummyResponse, DummySession


def test_put_sends_single_operation_batch(make_client):
    client, session = make_client(DummyResponse(200))

    client.put("light.1", "on", "ctx")

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://devicedb.test:9090/default/batch"
    assert call["json"] == [{"type": "put", "key": "light.1", "value": "on", "context": "ctx"}]


def test_delete_defaults_context_to_empty(make_client):
    client, session = make_client(DummyResponse(200))

    client.lww.delete("light.1")

    call = session.calls[0]
    assert call["url"] == "https://devicedb.test:9090/lww/batch"
    assert call["json"] == [{"type": "delete", "key": "light.1", "context": ""}]


def test_batch_rejects_unknown_operation_before_sending(make_client):
    client, session = make_client()

    with pytest.raises(ValidationError):
        client.batch([{"type": "upsert", "key": "k", "context": ""}])

    assert session.calls == []


def test_put_without_value_is_rejected(make_client):
    client, session = make_client()

    with pytest.raises(ValidationError):
        client.put("k", None)

    assert session.calls == []


def test_get_single_key_returns_resolved_object(make_client):
    client, session = make_client(
        DummyResponse(200, json_data=[{"siblings": ["on"], "context": "c1"}])
    )

    result = client.get("light.1")

    assert result == DBObject(siblings=("on",), value="on", context="c1")
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://devicedb.test:9090/default/values"
    assert call["json"] == ["light.1"]


def test_get_many_keys_keeps_order_and_missing_entries(make_client):
    client, _ = make_client(
        DummyResponse(
            200,
            json_data=[
                {"siblings": ["a", "b"], "context": "c1"},
                None,
            ],
        )
    )

    first, second = client.cloud.get(["k1", "k2"])

    assert first.value is None
    assert first.siblings == ("a", "b")
    assert second is None


def test_get_rejects_malformed_payload(make_client):
    client, _ = make_client(DummyResponse(200, json_data={"siblings": ["a"]}))

    with pytest.raises(ResponseParseError):
        client.get("k")


def test_get_matches_streams_records(make_client):
    response = DummyResponse(
        200,
        lines=["light.", "light.1", '{"siblings":["on"],"context":"c"}'],
    )
    client, session = make_client(response)
    collector = Collector()

    assert client.get_matches("light.", collector) == 1

    assert collector.results[0].key == "light.1"
    assert collector.results[0].value == "on"
    call = session.calls[0]
    assert call["url"] == "https://devicedb.test:9090/default/matches"
    assert call["json"] == ["light."]
    assert call["stream"] is True
    assert response.closed


def test_get_matches_requires_a_callback(make_client):
    client, session = make_client()

    with pytest.raises(ValidationError):
        client.get_matches("light.", None)

    assert session.calls == []


def test_get_matches_non_200_raises_without_parsing(make_client):
    response = DummyResponse(404, json_data={"message": "no such bucket"}, lines=["p"])
    client, _ = make_client(response)
    collector = Collector()

    with pytest.raises(UnexpectedResponseError) as excinfo:
        client.get_matches("p", collector)

    assert excinfo.value.body == {"message": "no such bucket"}
    assert collector.results == []
    assert response.closed


def test_merkle_root_returns_body(make_client):
    client, session = make_client(DummyResponse(200, json_data={"hash": "ab12"}))

    assert client.get_merkle_root() == {"hash": "ab12"}
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "https://devicedb.test:9090/default/merkleRoot"


def test_non_200_response_carries_body(make_client):
    client, _ = make_client(DummyResponse(400, text="bad batch"))

    with pytest.raises(UnexpectedResponseError) as excinfo:
        client.put("k", "v")

    assert excinfo.value.status_code == 400
    assert excinfo.value.body == "bad batch"
    assert excinfo.value.detail == "bad batch"


def test_server_error_for_5xx(make_client):
    client, _ = make_client(DummyResponse(503, json_data={"detail": "unavailable"}))

    with pytest.raises(ServerError) as excinfo:
        client.list_peers()

    assert excinfo.value.status_code == 503
    assert excinfo.value.detail == "unavailable"


def test_transport_errors_propagate_unchanged():
    session = DummySession(error=requests.ConnectionError("refused"))
    client = DeviceDBClient("http://devicedb.test", session=session)

    with pytest.raises(requests.ConnectionError):
        client.get("k")


def test_invalid_json_body_raises_parse_error(make_client):
    client, _ = make_client(
        DummyResponse(200, text="not-json", json_exc=ValueError("bad json"))
    )

    with pytest.raises(ResponseParseError):
        client.get_merkle_root()


def test_every_request_carries_tls_and_timeout_settings():
    session = DummySession([DummyResponse(200, json_data=[])])
    config = ClientConfig.from_options(
        "https://devicedb.test", ca_bundle="/etc/devicedb/ca.pem", timeout=3.5
    )
    client = DeviceDBClient(config, session=session)

    client.list_peers()

    call = session.calls[0]
    assert call["verify"] == "/etc/devicedb/ca.pem"
    assert call["timeout"] == 3.5


def test_options_are_rejected_alongside_a_config():
    config = ClientConfig.from_options("https://devicedb.test")

    with pytest.raises(ValidationError):
        DeviceDBClient(config, session=DummySession(), ca_bundle="/etc/devicedb/ca.pem")
    with pytest.raises(ValidationError):
        create_client(config, verify=False)


def test_certificate_verification_is_on_by_default(make_client):
    client, session = make_client(DummyResponse(200, json_data=[]))

    client.list_peers()

    assert session.calls[0]["verify"] is True


def test_add_peer_parses_address(make_client):
    client, session = make_client(DummyResponse(200))

    client.add_peer("peer-2", "https://10.0.0.2:9443")

    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == "https://devicedb.test:9090/peers/peer-2"
    assert call["json"] == {"id": "peer-2", "host": "10.0.0.2", "port": 9443}


def test_add_peer_defaults_port(make_client):
    client, session = make_client(DummyResponse(200))

    client.add_peer("peer-3", "https://peer3.local")

    assert session.calls[0]["json"]["port"] == 443


def test_add_peer_rejects_address_without_host(make_client):
    client, session = make_client()

    with pytest.raises(ValidationError):
        client.add_peer("peer-4", "not an address")

    assert session.calls == []


def test_remove_and_list_peers(make_client):
    client, session = make_client(
        DummyResponse(200), DummyResponse(200, json_data=[{"id": "peer-2"}])
    )

    client.remove_peer("peer-2")
    peers = client.list_peers()

    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["url"] == "https://devicedb.test:9090/peers/peer-2"
    assert peers == [{"id": "peer-2"}]


def test_identifiers_are_escaped_in_paths(make_client):
    client, session = make_client(DummyResponse(200))

    client.remove_peer("a/b")

    assert session.calls[0]["url"] == "https://devicedb.test:9090/peers/a%2Fb"


def test_buckets_and_aliases(make_client):
    client, _ = make_client()

    assert client.shared is client.default
    assert {b.name for b in (client.lww, client.default, client.cloud, client.local)} == {
        "lww",
        "default",
        "cloud",
        "local",
    }
    assert client.requires_auth() is False


def test_create_client_builds_config():
    client = create_client("https://devicedb.test", ca_bundle="/tmp/ca.pem")

    assert isinstance(client, DeviceDBClient)
    assert client.config.uris == ("https://devicedb.test",)
    assert client.config.tls_verify == "/tmp/ca.pem"
    client.close()


def test_close_leaves_injected_session_open(make_client):
    client, session = make_client()

    with client:
        pass

    assert session.closed is False


@pytest.mark.parametrize("key", ["", "plain", "unicode-ключ", "with/slash and space"])
def test_key_encoding_round_trip(key):
    assert decode_key(encode_key(key)) == key


def test_binary_key_round_trip():
    raw = bytes(range(256))

    assert decode_key_bytes(encode_key(raw)) == raw


def test_encode_key_is_base64():
    assert encode_key("abc") == "YWJj"


def test_get_rejects_non_object_entries(make_client):
    client, _ = make_client(DummyResponse(200, json_data=["light.1"]))

    with pytest.raises(ResponseParseError):
        client.get(["light.1"])
