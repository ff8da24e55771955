import pytest
import requests

from chain.client import ChainClient, GasPrice
from chain.errors import ChainError, InsufficientFunds, NonceTooLow, RPCError, TransactionFailed
from core.base_types import Address, TokenAmount, TransactionRequest

DEAD = "0x000000000000000000000000000000000000dead"


class _Response:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _request(data=b""):
    return TransactionRequest(
        to=Address.from_string(DEAD),
        value=TokenAmount(raw=0, decimals=18),
        data=data,
    )


def test_single_attempt_by_default(monkeypatch):
    calls = {"count": 0}

    def fake_post(*args, **kwargs):
        calls["count"] += 1
        raise requests.Timeout("boom")

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)
    monkeypatch.setattr("chain.client.time.sleep", lambda *_: None)

    with pytest.raises(ChainError, match="RPC request failed"):
        client._rpc_call("eth_blockNumber", [])
    assert calls["count"] == 1


def test_rpc_retries_then_success_when_enabled(monkeypatch):
    calls = {"count": 0}

    def fake_post(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            raise requests.Timeout("boom")
        return _Response({"result": "0x1"})

    client = ChainClient(["https://rpc.example"], max_retries=2)
    monkeypatch.setattr(client._session, "post", fake_post)
    monkeypatch.setattr("chain.client.time.sleep", lambda *_: None)

    assert client._rpc_call("eth_blockNumber", []) == "0x1"


def test_falls_back_to_next_endpoint(monkeypatch):
    seen = []

    def fake_post(url, **kwargs):
        seen.append(url)
        if url == "https://primary.example":
            raise requests.ConnectionError("down")
        return _Response({"result": "0x2"})

    client = ChainClient(["https://primary.example", "https://backup.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    assert client._rpc_call("eth_chainId", []) == "0x2"
    assert seen == ["https://primary.example", "https://backup.example"]


def test_rpc_error_classification_nonce_too_low(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response({"error": {"message": "nonce too low", "code": -32000}})

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    with pytest.raises(NonceTooLow):
        client._rpc_call("eth_sendRawTransaction", ["0x00"])


def test_rpc_error_classification_insufficient_funds(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response(
            {
                "error": {
                    "message": "insufficient funds for gas * price + value",
                    "code": -32000,
                }
            }
        )

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    with pytest.raises(InsufficientFunds):
        client._rpc_call("eth_sendRawTransaction", ["0x00"])


def test_revert_data_exposed_on_rpc_error(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response(
            {"error": {"message": "execution reverted", "code": 3, "data": "0xdead"}}
        )

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    with pytest.raises(RPCError) as exc:
        client.call(_request())

    assert exc.value.code == 3
    assert exc.value.data == "0xdead"


def test_get_gas_price_uses_priority_fee(monkeypatch):
    def fake_post(*args, **kwargs):
        method = kwargs["json"]["method"]
        if method == "eth_getBlockByNumber":
            return _Response({"result": {"baseFeePerGas": "0x5"}})
        return _Response({"result": "0x3"})

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    gas = client.get_gas_price()
    assert isinstance(gas, GasPrice)
    assert gas.base_fee == 5
    assert gas.priority_fee_medium == 3


def test_call_returns_bytes(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response({"result": "0x1234"})

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)
    assert client.call(_request()) == bytes.fromhex("1234")


def test_batch_call_orders_results_by_id(monkeypatch):
    sent = {}

    def fake_post(*args, **kwargs):
        sent["payload"] = kwargs["json"]
        return _Response(
            [
                {"id": 2, "result": "0x02"},
                {"id": 1, "result": "0x01"},
            ]
        )

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    results = client.batch_call([_request(b"\x01"), _request(b"\x02")])
    assert results == [b"\x01", b"\x02"]
    assert [entry["method"] for entry in sent["payload"]] == ["eth_call", "eth_call"]


def test_batch_call_missing_entry_is_error(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response([{"id": 1, "result": "0x01"}])

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    with pytest.raises(RPCError, match="missing ids"):
        client.batch_call([_request(), _request()])


def test_wait_for_receipt_raises_on_failed_status(monkeypatch):
    def fake_post(*args, **kwargs):
        return _Response(
            {
                "result": {
                    "transactionHash": "0xabc",
                    "blockNumber": "0x1",
                    "status": "0x0",
                    "gasUsed": "0x1",
                    "effectiveGasPrice": "0x1",
                    "logs": [],
                }
            }
        )

    client = ChainClient(["https://rpc.example"])
    monkeypatch.setattr(client._session, "post", fake_post)

    with pytest.raises(TransactionFailed) as exc:
        client.wait_for_receipt("0xabc", timeout=5)
    assert exc.value.tx_hash == "0xabc"
