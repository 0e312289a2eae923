"""End-to-end tests of the registration pipeline with a mocked server."""

import json

import httpx
import pytest

from bwl_bulk_register.errors import FileError
from bwl_bulk_register.pipeline import BulkRegistrationPipeline, PipelineState
from bwl_bulk_register.summary import RunSummary

USER_LIST = "\n".join(
    [
        "alice@example.com",
        "",
        "bob@example.com, Bob B, contributor, true",
        "carol@example.com,,bogus",
        "   ",
        "dave@example.com,Dave,e",
        "erin@example.com,Erin,v,false",
    ]
) + "\n"


@pytest.fixture
def write_users(user_list):
    def _write(text: str = USER_LIST):
        user_list.write_text(text, encoding="utf-8")
        return user_list

    return _write


class TestBulkRegistrationPipeline:
    def test_counts_with_partial_failure(self, config, make_client, server_factory, reporter, write_users) -> None:
        write_users()
        server = server_factory(rejected={"dave@example.com": "already a member"})
        pipeline = BulkRegistrationPipeline(config, client=make_client(server), reporter=reporter)

        summary = pipeline.run()

        # 7 lines, 2 blank, carol invalid, dave rejected
        assert summary == RunSummary(lines_processed=7, user_entries=5, valid_entries=4, registered=3)
        assert pipeline.state is PipelineState.SUMMARIZED
        assert len(server.auth_requests) == 1
        assert [json.loads(r.content)["username"] for r in server.provision_requests] == [
            "alice@example.com",
            "bob@example.com",
            "dave@example.com",
            "erin@example.com",
        ]

    def test_output(self, config, make_client, server_factory, reporter, write_users) -> None:
        write_users()
        server = server_factory(rejected={"dave@example.com": "already a member"})
        BulkRegistrationPipeline(config, client=make_client(server), reporter=reporter).run()

        out = reporter.stdout_lines
        assert out[0].startswith(">REGISTRATION-REQUEST #1 for user alice@example.com: ")
        assert out[1].startswith("<REGISTRATION-RESULT successfully registered user alice@example.com: ")
        assert out[2].startswith(">REGISTRATION-REQUEST #2 for user bob@example.com: ")
        assert any(line.startswith(">REGISTRATION-REQUEST #4 for user dave@example.com") for line in out)
        assert out[-6:] == RunSummary(7, 5, 4, 3).format_lines()
        assert reporter.stderr_lines == [
            "ERROR: could not parse line 4 (unknown role 'bogus'):  carol@example.com,,bogus",
            "ERROR: <REGISTRATION-ERROR for user dave@example.com (Code=400): Bad Request - already a member",
        ]

    def test_check_only_sends_nothing(self, make_config, make_client, reporter, write_users) -> None:
        write_users()
        config = make_config(check_only=True)

        def no_network(request: httpx.Request) -> httpx.Response:
            raise AssertionError(f"unexpected request {request.method} {request.url}")

        client = make_client(no_network, config)
        pipeline = BulkRegistrationPipeline(config, client=client, reporter=reporter)

        summary = pipeline.run()

        assert summary == RunSummary(lines_processed=7, user_entries=5, valid_entries=4, registered=0)
        assert sum(line.startswith(">REGISTRATION-REQUEST") for line in reporter.stdout_lines) == 4
        assert not any(line.startswith("<REGISTRATION") for line in reporter.stdout_lines)

    def test_check_only_never_creates_client(self, make_config, reporter, write_users) -> None:
        write_users("alice@example.com\n")
        pipeline = BulkRegistrationPipeline(make_config(check_only=True), reporter=reporter)
        pipeline.run()
        assert pipeline._client is None

    def test_auth_failure_falls_back_to_default_server(self, config, make_client, server_factory, reporter, write_users) -> None:
        write_users("alice@example.com\n")
        server = server_factory(auth_status=500, auth_body={})
        pipeline = BulkRegistrationPipeline(config, client=make_client(server), reporter=reporter)

        summary = pipeline.run()

        assert summary.registered == 1
        assert pipeline.service_provider_address is None
        assert server.provision_requests[0].url.host == "bwl.test"
        assert reporter.stderr_lines[0].startswith("ERROR: authentication probe failed: ")

    def test_registers_on_service_provider(self, config, make_client, server_factory, reporter, write_users) -> None:
        write_users("alice@example.com\nbob@example.com\n")
        server = server_factory(
            auth_body={"result": "authenticated", "serviceProviderAddress": "https://sp.bwl.test"}
        )
        BulkRegistrationPipeline(config, client=make_client(server), reporter=reporter).run()

        assert server.auth_requests[0].url.host == "bwl.test"
        assert [r.url.host for r in server.provision_requests] == ["sp.bwl.test", "sp.bwl.test"]

    def test_network_errors_do_not_stop_run(self, config, make_client, reporter, write_users) -> None:
        write_users("alice@example.com\nbob@example.com\n")
        calls = []

        def flaky(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"result": "authenticated"})
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=json.loads(request.content))

        summary = BulkRegistrationPipeline(config, client=make_client(flaky), reporter=reporter).run()

        assert len(calls) == 2
        assert summary == RunSummary(lines_processed=2, user_entries=2, valid_entries=2, registered=1)
        assert reporter.stderr_lines == ["ERROR: <REGISTRATION-ERROR for user alice@example.com: timed out"]

    def test_unreadable_file_sends_nothing(self, config, make_client, fake_server, reporter) -> None:
        pipeline = BulkRegistrationPipeline(config, client=make_client(fake_server), reporter=reporter)

        with pytest.raises(FileError):
            pipeline.run()

        assert fake_server.requests == []
        assert pipeline.state is PipelineState.INIT

    def test_cannot_run_twice(self, make_config, reporter, write_users) -> None:
        write_users("alice@example.com\n")
        pipeline = BulkRegistrationPipeline(make_config(check_only=True), reporter=reporter)
        pipeline.run()
        with pytest.raises(RuntimeError):
            pipeline.run()

    def test_empty_file(self, config, make_client, fake_server, reporter, write_users) -> None:
        write_users("")
        summary = BulkRegistrationPipeline(config, client=make_client(fake_server), reporter=reporter).run()
        assert summary == RunSummary()
        assert fake_server.provision_requests == []

    def test_undecodable_rejection_does_not_stop_run(self, config, make_client, reporter, write_users) -> None:
        write_users("alice@example.com\nbob@example.com\n")
        registered = []

        def corrupt_first(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"result": "authenticated"})
            body = json.loads(request.content)
            if body["username"] == "alice@example.com":
                return httpx.Response(400, headers={"Content-Encoding": "gzip"}, content=b"not gzip")
            registered.append(body["username"])
            return httpx.Response(200, json=body)

        summary = BulkRegistrationPipeline(config, client=make_client(corrupt_first), reporter=reporter).run()

        assert registered == ["bob@example.com"]
        assert summary == RunSummary(lines_processed=2, user_entries=2, valid_entries=2, registered=1)
        assert reporter.stderr_lines[0].startswith("ERROR: <REGISTRATION-ERROR for user alice@example.com: ")

    def test_form_feed_inside_name_keeps_one_entry(self, make_config, reporter, write_users) -> None:
        write_users("alice@example.com,Alice\x0cSmith,editor\n")

        summary = BulkRegistrationPipeline(make_config(check_only=True), reporter=reporter).run()

        assert summary == RunSummary(lines_processed=1, user_entries=1, valid_entries=1, registered=0)
