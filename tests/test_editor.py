"""Tests for editor.py — the interactive edit/upload loop.

The editor process is replaced by FakeEditor: every poll interval (the
patched time.sleep) applies one scripted step to the scratch file, and the
process reports itself exited once its steps for the current launch are
used up. Each step is therefore observed by exactly one poll.
"""

import os
from unittest.mock import MagicMock

import pytest

from trello_cli import editor
from trello_cli.content import render_card
from trello_cli.editor import EditSession, SyncOutcome, edit_card, resolve_editor
from trello_cli.exceptions import CliError, ContentParseError
from trello_cli.models import Card, CardContents

UNCHANGED = object()


class FakeEditor:
    """Scripted stand-in for subprocess.Popen and the poll sleep.

    launches: one list of steps per editor launch. A step is the new file
    text, UNCHANGED, or a callable receiving the scratch path.
    """

    def __init__(self, *launches):
        self.launches = [list(steps) for steps in launches]
        self.argv_history = []
        self.path = None
        self.steps = []
        self.terminated = False
        self.pid = 4242

    # subprocess.Popen replacement
    def popen(self, argv):
        self.argv_history.append(list(argv))
        self.path = argv[-1]
        self.steps = self.launches.pop(0) if self.launches else []
        self.terminated = False
        return self

    # time.sleep replacement
    def sleep(self, seconds):
        assert seconds == editor.POLL_INTERVAL_SECONDS
        if not self.steps:
            return
        step = self.steps.pop(0)
        if step is UNCHANGED:
            return
        if callable(step):
            step(self.path)
            return
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(step)

    # Popen process API
    def poll(self):
        if self.terminated or not self.steps:
            return 0
        return None

    def terminate(self):
        self.terminated = True

    def wait(self, timeout=None):
        return 0

    def kill(self):
        self.terminated = True


def _card(**kwargs):
    base = {"id": "card-1", "name": "Fix login", "desc": "Steps to reproduce", "url": "u"}
    base.update(kwargs)
    return Card(**base)


def _text(name, desc=""):
    return render_card(CardContents(name=name, desc=desc)) + "\n"


def _write_bytes(data):
    def step(path):
        with open(path, "wb") as f:
            f.write(data)

    return step


def _replace_atomically(text):
    """Save by writing a sibling file and renaming it over the scratch path."""

    def step(path):
        sibling = path + ".swp"
        with open(sibling, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(sibling, path)

    return step


@pytest.fixture
def run_session(monkeypatch):
    """Run an EditSession against a FakeEditor; returns (session, outcome, update)."""

    def _run(fake, card=None, update=None, answers=None, editor_cmd="vim"):
        update = update or MagicMock(side_effect=lambda c: c)
        monkeypatch.setattr(editor.subprocess, "Popen", fake.popen)
        monkeypatch.setattr(editor.time, "sleep", fake.sleep)
        prompts = []

        def fake_input(prompt=""):
            prompts.append(prompt)
            if not answers:
                raise EOFError
            answer = answers.pop(0)
            if isinstance(answer, BaseException):
                raise answer
            return answer

        monkeypatch.setattr("builtins.input", fake_input)
        session = EditSession(card or _card(), update=update, editor=editor_cmd)
        outcome = session.run()
        session.prompts = prompts
        return session, outcome, update

    return _run


# ---------------------------------------------------------------------------
# No-op sessions
# ---------------------------------------------------------------------------


class TestUnchangedDocument:
    def test_closing_immediately_makes_no_calls(self, run_session, capsys):
        fake = FakeEditor([UNCHANGED])
        session, outcome, update = run_session(fake)
        assert outcome is None
        update.assert_not_called()
        assert session.state == editor.DONE
        assert session.prompts == []
        assert capsys.readouterr().err == ""

    def test_several_idle_polls_make_no_calls(self, run_session):
        fake = FakeEditor([UNCHANGED, UNCHANGED, UNCHANGED])
        _, outcome, update = run_session(fake)
        assert outcome is None
        update.assert_not_called()

    def test_trailing_whitespace_in_description_is_not_a_change(self, run_session):
        fake = FakeEditor([UNCHANGED])
        _, outcome, update = run_session(fake, card=_card(desc="Steps\n\n  "))
        assert outcome is None
        update.assert_not_called()

    def test_editor_appending_newlines_is_not_a_change(self, run_session):
        card = _card()
        fake = FakeEditor([render_card(card) + "\n\n\n"])
        _, outcome, update = run_session(fake, card=card)
        assert outcome is None
        update.assert_not_called()


# ---------------------------------------------------------------------------
# Updates while the editor is open
# ---------------------------------------------------------------------------


class TestIncrementalUpdates:
    def test_one_save_one_update(self, run_session):
        fake = FakeEditor([_text("Fix login bug", "Steps to reproduce")])
        session, outcome, update = run_session(fake)
        assert update.call_count == 1
        sent = update.call_args.args[0]
        assert sent.name == "Fix login bug"
        assert sent.desc == "Steps to reproduce"
        assert sent.id == "card-1"
        assert outcome.ok
        assert outcome.card == sent
        assert session.state == editor.DONE

    def test_each_distinct_save_is_uploaded_once(self, run_session):
        fake = FakeEditor(
            [
                _text("A", "one"),
                UNCHANGED,
                _text("A", "two"),
                _text("A", "two"),
                _text("B", "two"),
                UNCHANGED,
            ]
        )
        _, outcome, update = run_session(fake)
        sent = [(c.args[0].name, c.args[0].desc) for c in update.call_args_list]
        assert sent == [("A", "one"), ("A", "two"), ("B", "two")]
        assert outcome.ok

    def test_multiline_description_round_trips(self, run_session):
        desc = "Line one\n\n- item\n- item 2"
        fake = FakeEditor([_text("Release", desc)])
        _, _, update = run_session(fake)
        assert update.call_args.args[0].desc == desc

    def test_changes_saved_right_before_exit_are_uploaded(self, run_session):
        # The last step is applied in the same interval the process exits.
        fake = FakeEditor([_text("Final name", "Steps to reproduce")])
        _, _, update = run_session(fake)
        assert update.call_args.args[0].name == "Final name"

    def test_non_name_fields_are_preserved(self, run_session):
        card = _card(closed=False, id_list="list-9", url="https://trello.com/c/x")
        fake = FakeEditor([_text("Renamed", "Steps to reproduce")])
        _, _, update = run_session(fake, card=card)
        sent = update.call_args.args[0]
        assert sent.id_list == "list-9"
        assert sent.url == "https://trello.com/c/x"


    def test_atomically_replaced_file_is_read(self, run_session):
        fake = FakeEditor([_replace_atomically(_text("Renamed", "New steps")), UNCHANGED])
        _, outcome, update = run_session(fake)
        assert update.call_count == 1
        sent = update.call_args.args[0]
        assert (sent.name, sent.desc) == ("Renamed", "New steps")
        assert outcome.ok
        assert not os.path.exists(fake.path + ".swp")


class TestUnparsableContent:
    def test_invalid_utf8_is_skipped_until_fixed(self, run_session):
        fake = FakeEditor(
            [
                _write_bytes(b"Fix login\n=========\ncaf\xe9 latin-1 save\n"),
                UNCHANGED,
                _text("Fix login", "café latin-1 save"),
            ]
        )
        _, outcome, update = run_session(fake)
        assert update.call_count == 1
        assert update.call_args.args[0].desc == "café latin-1 save"
        assert outcome.ok

    def test_invalid_utf8_at_exit_makes_no_calls(self, run_session):
        fake = FakeEditor([_write_bytes(b"Fix login\n=========\n\xff\xfe\n")])
        _, outcome, update = run_session(fake)
        assert outcome is None
        update.assert_not_called()

    def test_unparsable_polls_are_skipped(self, run_session):
        fake = FakeEditor(
            [
                "Fix login",
                "Fix login\n--\nhalf saved",
                "",
                _text("Fix login v2", "Steps to reproduce"),
            ]
        )
        _, outcome, update = run_session(fake)
        assert update.call_count == 1
        assert update.call_args.args[0].name == "Fix login v2"
        assert outcome.ok

    def test_editor_exit_while_unparsable_ends_session(self, run_session):
        fake = FakeEditor(["garbage without delimiter"])
        session, outcome, update = run_session(fake)
        assert outcome is None
        update.assert_not_called()
        assert session.state == editor.DONE

    def test_parse_errors_are_not_shown_to_user(self, run_session, capsys):
        fake = FakeEditor(["nope", UNCHANGED])
        run_session(fake)
        assert capsys.readouterr().err == ""


# ---------------------------------------------------------------------------
# Failures and re-entry
# ---------------------------------------------------------------------------


class TestFailureAndRetry:
    def test_failure_prompts_before_reopening(self, run_session, capsys):
        results = [CliError("[ERROR] HTTP 400: invalid value for name"), None]

        def update(card):
            result = results.pop(0)
            if result is not None:
                raise result
            return card

        fake = FakeEditor([_text("Bad name", "d")], [UNCHANGED])
        session, outcome, _ = run_session(fake, update=update, answers=[""])

        assert len(fake.argv_history) == 2
        assert session.prompts == [editor.RETRY_PROMPT]
        err = capsys.readouterr().err
        assert "An error occurred while trying to update the card." in err
        assert "invalid value for name" in err
        assert err.endswith("\n\n")
        # The reopened session resubmits the same content and succeeds.
        assert outcome.ok
        assert outcome.card.name == "Bad name"
        assert session.state == editor.DONE

    def test_reopened_editor_uses_same_scratch_file(self, run_session):
        update = MagicMock(side_effect=[CliError("[ERROR] boom"), _card(name="X")])
        fake = FakeEditor([_text("X", "d")], [UNCHANGED])
        run_session(fake, update=update, answers=[""])
        assert fake.argv_history[0][-1] == fake.argv_history[1][-1]

    def test_user_can_amend_content_after_failure(self, run_session):
        def update(card):
            if card.name == "Bad":
                raise CliError("[ERROR] rejected")
            return card

        update_mock = MagicMock(side_effect=update)
        fake = FakeEditor([_text("Bad", "d")], [_text("Good", "d")])
        _, outcome, _ = run_session(fake, update=update_mock, answers=[""])
        names = [c.args[0].name for c in update_mock.call_args_list]
        assert names == ["Bad", "Good"]
        assert outcome.ok

    def test_declining_retry_ends_without_more_calls(self, run_session):
        update = MagicMock(side_effect=CliError("[ERROR] offline"))
        fake = FakeEditor([_text("New", "d")])
        session, outcome, _ = run_session(fake, update=update, answers=[EOFError()])
        assert update.call_count == 1
        assert len(fake.argv_history) == 1
        assert not outcome.ok
        assert "offline" in str(outcome.error)
        assert session.state == editor.DONE

    def test_ctrl_c_at_prompt_declines(self, run_session):
        update = MagicMock(side_effect=CliError("[ERROR] offline"))
        fake = FakeEditor([_text("New", "d")])
        _, outcome, _ = run_session(fake, update=update, answers=[KeyboardInterrupt()])
        assert len(fake.argv_history) == 1
        assert not outcome.ok

    def test_failed_update_is_resubmitted_on_next_poll(self, run_session):
        update = MagicMock(side_effect=[CliError("[ERROR] flaky"), _card(name="N")])
        fake = FakeEditor([_text("N", "d"), UNCHANGED])
        _, outcome, _ = run_session(fake, update=update)
        assert update.call_count == 2
        assert outcome.ok

    def test_success_after_failure_stops_resubmitting(self, run_session):
        update = MagicMock(side_effect=[CliError("[ERROR] flaky"), _card(name="N")])
        fake = FakeEditor([_text("N", "d"), UNCHANGED, UNCHANGED, UNCHANGED])
        run_session(fake, update=update)
        assert update.call_count == 2

    def test_only_cli_errors_count_as_failed_uploads(self, run_session):
        update = MagicMock(side_effect=RuntimeError("bug"))
        fake = FakeEditor([_text("N", "d"), UNCHANGED])
        with pytest.raises(RuntimeError):
            run_session(fake, update=update)


# ---------------------------------------------------------------------------
# Fatal local errors and cleanup
# ---------------------------------------------------------------------------


class TestResources:
    def test_scratch_file_is_seeded_and_removed(self, run_session):
        seen = {}

        def capture(path):
            with open(path, encoding="utf-8") as f:
                seen["text"] = f.read()
            seen["path"] = path

        fake = FakeEditor([capture])
        card = _card()
        session, _, _ = run_session(fake, card=card)
        assert seen["text"] == render_card(card) + "\n"
        assert seen["path"].endswith(".md")
        assert not os.path.exists(seen["path"])

    def test_missing_scratch_file_is_fatal(self, run_session):
        fake = FakeEditor([os.remove, UNCHANGED])
        with pytest.raises(CliError, match="Could not read scratch file"):
            run_session(fake)
        assert fake.terminated is True

    def test_spawn_failure_is_fatal_and_cleans_up(self, monkeypatch):
        created = []
        real_mkstemp = editor.tempfile.mkstemp

        def mkstemp(**kwargs):
            fd, path = real_mkstemp(**kwargs)
            created.append(path)
            return fd, path

        monkeypatch.setattr(editor.tempfile, "mkstemp", mkstemp)
        monkeypatch.setattr(
            editor.subprocess, "Popen", MagicMock(side_effect=FileNotFoundError("no such editor"))
        )
        session = EditSession(_card(), update=MagicMock(), editor="does-not-exist")
        with pytest.raises(CliError, match="Could not start editor 'does-not-exist'"):
            session.run()
        assert created and not os.path.exists(created[0])

    def test_unexpected_error_terminates_editor_and_removes_file(self, run_session):
        update = MagicMock(side_effect=RuntimeError("bug"))
        fake = FakeEditor([_text("N", "d"), UNCHANGED, UNCHANGED])
        with pytest.raises(RuntimeError):
            run_session(fake, update=update)
        assert fake.terminated is True
        assert not os.path.exists(fake.path)

    def test_editor_command_is_split_and_path_appended(self, run_session):
        fake = FakeEditor([UNCHANGED])
        run_session(fake, editor_cmd="code --wait")
        argv = fake.argv_history[0]
        assert argv[:2] == ["code", "--wait"]
        assert argv[2].endswith(".md")
        assert len(argv) == 3

    def test_empty_editor_command_is_rejected(self):
        session = EditSession(_card(), update=MagicMock(), editor="   ")
        with pytest.raises(CliError, match="Editor command is empty"):
            session.run()


# ---------------------------------------------------------------------------
# Session states
# ---------------------------------------------------------------------------


class TestSessionStates:
    def test_states_follow_the_session_lifecycle(self, monkeypatch):
        seen = []
        results = [CliError("[ERROR] rejected"), None]

        def update(card):
            seen.append(("update", session.state))
            result = results.pop(0)
            if result is not None:
                raise result
            return card

        fake = FakeEditor([_text("Bad", "d")], [UNCHANGED])
        session = EditSession(_card(), update=update, editor="vim")

        def sleep(seconds):
            seen.append(("sleep", session.state))
            fake.sleep(seconds)

        def fake_input(prompt=""):
            seen.append(("prompt", session.state))
            return ""

        real_poll_until_exit = session._poll_until_exit

        def poll_until_exit():
            seen.append(("opened", session.state))
            real_poll_until_exit()
            seen.append(("closed", session.state))

        monkeypatch.setattr(editor.subprocess, "Popen", fake.popen)
        monkeypatch.setattr(editor.time, "sleep", sleep)
        monkeypatch.setattr("builtins.input", fake_input)
        monkeypatch.setattr(session, "_poll_until_exit", poll_until_exit)

        assert session.state == editor.IDLE
        session.run()

        one_launch = [
            ("opened", editor.EDITOR_OPEN),
            ("sleep", editor.POLLING),
            ("update", editor.UPDATING),
            ("closed", editor.EDITOR_CLOSED),
        ]
        assert seen == one_launch + [("prompt", editor.AWAITING_RETRY_ACK)] + one_launch
        assert session.state == editor.DONE


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


class TestNeedsUpdate:
    def _session(self):
        session = EditSession(_card(), update=MagicMock(), editor="vi")
        session.working = _card()
        return session

    def test_same_content_without_attempt(self):
        session = self._session()
        assert not session.needs_update(CardContents("Fix login", "Steps to reproduce"))

    def test_changed_name(self):
        assert self._session().needs_update(CardContents("Other", "Steps to reproduce"))

    def test_changed_description(self):
        assert self._session().needs_update(CardContents("Fix login", "Other"))

    def test_same_content_after_success(self):
        session = self._session()
        session.outcome = SyncOutcome(card=_card())
        assert not session.needs_update(CardContents("Fix login", "Steps to reproduce"))

    def test_same_content_after_failure(self):
        session = self._session()
        session.outcome = SyncOutcome(error=CliError("x"))
        assert session.needs_update(CardContents("Fix login", "Steps to reproduce"))


class TestResolveEditor:
    def test_environment_editor_wins(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "nano")
        monkeypatch.setattr("trello_cli.config.EDITOR", "emacs")
        assert resolve_editor() == "nano"

    def test_config_editor_fallback(self, monkeypatch):
        monkeypatch.setattr("trello_cli.config.EDITOR", "emacs")
        assert resolve_editor() == "emacs"

    def test_defaults_to_vi(self):
        assert resolve_editor() == "vi"


class TestEditCard:
    def test_raises_when_failure_is_left_unsaved(self, monkeypatch):
        failed = SyncOutcome(error=CliError("[ERROR] HTTP 400"))
        monkeypatch.setattr(EditSession, "run", lambda self: failed)
        with pytest.raises(CliError, match="Card changes were not saved"):
            edit_card(_card(), update=MagicMock(), editor="vi")

    def test_returns_outcome(self, monkeypatch):
        ok = SyncOutcome(card=_card())
        monkeypatch.setattr(EditSession, "run", lambda self: ok)
        assert edit_card(_card(), update=MagicMock(), editor="vi") is ok

    def test_returns_none_without_changes(self, monkeypatch):
        monkeypatch.setattr(EditSession, "run", lambda self: None)
        assert edit_card(_card(), update=MagicMock(), editor="vi") is None


class TestParseErrorType:
    def test_parse_error_is_cli_error(self):
        assert issubclass(ContentParseError, CliError)
