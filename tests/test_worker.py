import asyncio
import threading
import time

import pytest

import settings
from minecraft_auth import AuthOrchestrator, AuthResult, BackgroundAuthenticator, ErrorKind, Session
from tests.conftest import DEVICE_CODE_PAYLOAD, json_response


async def no_sleep(seconds):
    return None


@pytest.fixture
def worker(store, services):
    orchestrator = AuthOrchestrator(store=store, client_factory=services.client, sleep=no_sleep)
    with BackgroundAuthenticator(orchestrator) as worker:
        yield worker


class TestBackgroundAuthenticator:
    """Tests for running flows off the caller's thread."""

    def test_authenticate_resolves_future(self, worker, services, store):
        services.add("POST", settings.DEVICE_CODE_URL, json_response(200, DEVICE_CODE_PAYLOAD))
        services.add("POST", settings.MICROSOFT_TOKEN_URL, json_response(200, {
            "access_token": "tok1",
            "refresh_token": "ref1",
        }))
        services.script_chain(name="Alex")

        result = worker.start_authenticate().result(timeout=10)

        assert result == AuthResult(username="Alex")
        assert result.ok
        assert store.has_valid()

    def test_callback_receives_result(self, worker, services):
        services.add("POST", settings.MICROSOFT_TOKEN_URL, json_response(200, {"access_token": "tok1"}))
        services.script_chain(name="Alex")
        worker.orchestrator.store.save(Session(username="Alex", account_id="id", access_token="a", refresh_token="r"))

        delivered = []
        done = threading.Event()

        def callback(result):
            delivered.append(result)
            done.set()

        worker.start_refresh(callback).result(timeout=10)

        assert done.wait(timeout=10)
        assert delivered[0].username == "Alex"

    def test_errors_are_returned_as_tagged_result(self, worker, services):
        services.add("POST", settings.DEVICE_CODE_URL, json_response(200, {"error": "invalid_client"}))

        result = worker.start_authenticate().result(timeout=10)

        assert not result.ok
        assert result.username is None
        assert result.error.kind is ErrorKind.PROVIDER

    def test_refresh_without_session(self, worker):
        result = worker.start_refresh().result(timeout=10)

        assert result.error.kind is ErrorKind.NO_SESSION
        assert result.error.requires_login

    def test_closed_worker_rejects_new_flows(self, store, services):
        worker = BackgroundAuthenticator(AuthOrchestrator(store=store, client_factory=services.client))
        worker.close()

        with pytest.raises(RuntimeError):
            worker.start_refresh()

    def test_callback_receives_invalid_grant_when_clear_fails(self, worker, services, monkeypatch):
        store = worker.orchestrator.store
        store.save(Session(username="Alex", account_id="id", access_token="a", refresh_token="r"))
        services.add("POST", settings.MICROSOFT_TOKEN_URL, json_response(400, {"error": "invalid_grant"}))

        def read_only():
            raise PermissionError("read-only config dir")

        monkeypatch.setattr(store, "clear", read_only)

        delivered = []
        done = threading.Event()

        def callback(result):
            delivered.append(result)
            done.set()

        worker.start_refresh(callback)

        assert done.wait(timeout=10)
        assert delivered[0].error.kind is ErrorKind.INVALID_GRANT
        assert delivered[0].error.requires_login

    def test_unexpected_exception_is_delivered_as_internal_error(self, worker, monkeypatch):
        async def broken():
            raise KeyError("sessionUuid")

        monkeypatch.setattr(worker.orchestrator, "refresh_and_authenticate", broken)

        delivered = []
        done = threading.Event()

        def callback(result):
            delivered.append(result)
            done.set()

        result = worker.start_refresh(callback).result(timeout=10)

        assert done.wait(timeout=10)
        assert result.error.kind is ErrorKind.INTERNAL
        assert delivered[0].error.kind is ErrorKind.INTERNAL

    def test_result_reports_unsaved_session(self, worker, services, monkeypatch):
        services.add("POST", settings.DEVICE_CODE_URL, json_response(200, DEVICE_CODE_PAYLOAD))
        services.add("POST", settings.MICROSOFT_TOKEN_URL, json_response(200, {
            "access_token": "tok1",
            "refresh_token": "ref1",
        }))
        services.script_chain(name="Alex")

        def disk_full(session):
            raise OSError("No space left on device")

        monkeypatch.setattr(worker.orchestrator.store, "save", disk_full)

        result = worker.start_authenticate().result(timeout=10)

        assert result.ok
        assert result.username == "Alex"
        assert not result.persisted

    def test_cancelling_future_aborts_login(self, store, services):
        challenge_shown = threading.Event()

        async def forever(seconds):
            await asyncio.Event().wait()

        orchestrator = AuthOrchestrator(
            store=store,
            client_factory=services.client,
            on_device_code=lambda challenge: challenge_shown.set(),
            sleep=forever,
        )
        services.add("POST", settings.DEVICE_CODE_URL, json_response(200, DEVICE_CODE_PAYLOAD))

        with BackgroundAuthenticator(orchestrator) as worker:
            future = worker.start_authenticate()
            assert challenge_shown.wait(timeout=10)
            assert orchestrator.is_authenticating

            assert future.cancel()

            deadline = time.monotonic() + 10
            while orchestrator.is_authenticating and time.monotonic() < deadline:
                time.sleep(0.01)
            assert not orchestrator.is_authenticating

        assert future.cancelled()
        assert not services.requests_to(settings.MICROSOFT_TOKEN_URL)
        assert store.load() == (None, False)
