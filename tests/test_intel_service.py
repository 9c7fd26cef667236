from types import SimpleNamespace

import pytest

from orbitwatch.intel_service import (
    EMPTY_REPLY_TEXT,
    MISSING_KEY_TEXT,
    UPLINK_FAILED_TEXT,
    IntelReportController,
    Language,
    build_prompt,
    generate_target_analysis,
)


class FakeCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(reply=None, error=None):
    completions = FakeCompletions(reply, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_prompt_contents(make_target):
    target = make_target(name="COSMOS 2251 DEB")
    prompt = build_prompt(target, Language.JP)
    assert "COSMOS 2251 DEB" in prompt
    assert "Japanese" in prompt
    assert "SATELLITE" in prompt
    assert "LOW" in prompt
    assert "80 words" in prompt


def test_report_text_returned(make_target):
    client, completions = fake_client("  Orbit nominal.  ")
    assert generate_target_analysis(make_target(), Language.CN, client=client) == "Orbit nominal."
    (call,) = completions.calls
    assert "Chinese" in call["messages"][0]["content"]


def test_missing_key(monkeypatch, make_target):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert generate_target_analysis(make_target()) == MISSING_KEY_TEXT


def test_request_failure_becomes_fallback(make_target):
    client, _ = fake_client(error=RuntimeError("connection reset"))
    assert generate_target_analysis(make_target(), client=client) == UPLINK_FAILED_TEXT


def test_client_construction_failure_becomes_fallback(monkeypatch, make_target):
    def broken_client(**kwargs):
        raise ValueError("Invalid port: ':1'")

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr("orbitwatch.intel_service.openai.OpenAI", broken_client)
    assert generate_target_analysis(make_target()) == UPLINK_FAILED_TEXT


@pytest.mark.parametrize("reply", [None, "", "   "])
def test_empty_reply(make_target, reply):
    client, _ = fake_client(reply)
    assert generate_target_analysis(make_target(), client=client) == EMPTY_REPLY_TEXT


class DeferredSubmit:
    """Collects jobs so the test decides when 'background' work finishes."""

    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)


def report_for(target, language):
    return f"report for {target.id} ({language.value})"


def test_request_sets_loading_then_text(make_target):
    submit = DeferredSubmit()
    updates = []
    ctl = IntelReportController(generate=report_for, submit=submit,
                                on_update=lambda c: updates.append((c.loading, c.text)))
    ctl.request(make_target("T-1"))
    assert ctl.loading and ctl.text == ""
    submit.jobs[0]()
    assert not ctl.loading
    assert ctl.text == "report for T-1 (EN)"
    assert updates == [(True, ""), (False, "report for T-1 (EN)")]


def test_stale_reply_is_dropped(make_target):
    submit = DeferredSubmit()
    ctl = IntelReportController(generate=report_for, submit=submit)
    ctl.request(make_target("T-1"))
    ctl.request(make_target("T-2"), Language.JP)

    # Second request resolves first, then the superseded one arrives late
    submit.jobs[1]()
    submit.jobs[0]()
    assert ctl.target_id == "T-2"
    assert ctl.text == "report for T-2 (JP)"
    assert not ctl.loading


def test_clear_discards_in_flight_reply(make_target):
    submit = DeferredSubmit()
    ctl = IntelReportController(generate=report_for, submit=submit)
    ctl.request(make_target("T-1"))
    ctl.clear()
    submit.jobs[0]()
    assert ctl.text == ""
    assert ctl.target_id is None
    assert not ctl.loading


def test_dispatch_hook_receives_token(make_target):
    submit = DeferredSubmit()
    delivered = []
    ctl = IntelReportController(generate=report_for, submit=submit,
                                dispatch=lambda token, text: delivered.append((token, text)))
    token = ctl.request(make_target("T-9"))
    submit.jobs[0]()
    assert delivered == [(token, "report for T-9 (EN)")]
    assert ctl.loading  # nothing delivered to the controller yet
    assert ctl.deliver(token, delivered[0][1])
    assert not ctl.deliver(token - 1, "old")
    assert ctl.text == "report for T-9 (EN)"


def test_default_submit_runs_on_daemon_thread(make_target):
    import threading

    done = threading.Event()
    seen = {}

    def generate(target, language):
        seen["daemon"] = threading.current_thread().daemon
        done.set()
        return "ok"

    ctl = IntelReportController(generate=generate,
                                dispatch=lambda token, text: None)
    ctl.request(make_target())
    assert done.wait(5.0)
    assert seen["daemon"] is True


def test_generator_error_ends_loading_with_fallback(make_target):
    submit = DeferredSubmit()

    def explode(target, language):
        raise RuntimeError("socket closed")

    ctl = IntelReportController(generate=explode, submit=submit)
    ctl.request(make_target("T-1"))
    submit.jobs[0]()
    assert not ctl.loading
    assert ctl.text == UPLINK_FAILED_TEXT
    assert ctl.target_id == "T-1"
