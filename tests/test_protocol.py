"""Tests for budsctl.protocol."""

from __future__ import annotations

import json

import pytest

from budsctl.protocol import IPCRequest, IPCResponse, ProtocolError


class TestIPCRequest:
    def test_status_request_omits_device(self):
        assert json.loads(IPCRequest(command="status").to_json()) == {"command": "status"}

    def test_request_is_one_line(self):
        data = IPCRequest(command="toggle", device="AA:BB:CC:DD:EE:FF").to_json()
        assert data.endswith(b"\n")
        assert data.count(b"\n") == 1

    def test_parse_toggle(self):
        request = IPCRequest.from_json(b'{"command": "toggle", "device": "AA:BB:CC:DD:EE:FF"}\n')
        assert request == IPCRequest(command="toggle", device="AA:BB:CC:DD:EE:FF")

    def test_missing_command_is_empty(self):
        assert IPCRequest.from_json(b"{}").command == ""

    @pytest.mark.parametrize(
        "payload",
        [b"", b"\n", b"not json", b"[1, 2]", b'"status"', b'{"command": 5}', b"\xff\xfe"],
    )
    def test_malformed(self, payload):
        with pytest.raises(ProtocolError):
            IPCRequest.from_json(payload)


class TestIPCResponse:
    def test_success_body(self):
        response = IPCResponse(state="connected", device="AA:BB:CC:DD:EE:FF")
        assert response.to_dict() == {"state": "connected", "device": "AA:BB:CC:DD:EE:FF"}

    def test_failure_body_has_only_error(self):
        assert IPCResponse.failure("boom").to_dict() == {"error": "boom"}

    def test_parse(self):
        response = IPCResponse.from_json(b'{"state": "blocked", "device": "AA:BB:CC:DD:EE:FF"}\n')
        assert response.state == "blocked"
        assert response.error == ""
