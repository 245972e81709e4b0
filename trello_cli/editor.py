"""
Interactive card editing.

Opens the user's editor ($EDITOR, falling back to vi) on a scratch copy of a
card and uploads every saved change while the editor is still open. When
the last upload failed, the user is told why and the editor is reopened on
the same file so the content can be fixed and resubmitted.
"""

import os
import shlex
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass

from trello_cli import _log, config, entities
from trello_cli.content import parse_card_contents, render_card
from trello_cli.exceptions import CliError, ContentParseError
from trello_cli.models import Card

POLL_INTERVAL_SECONDS = 0.5
SCRATCH_SUFFIX = ".md"
RETRY_PROMPT = "Press Enter to re-enter editor "

# Session states
IDLE = "idle"
EDITOR_OPEN = "editor_open"
POLLING = "polling"
UPDATING = "updating"
EDITOR_CLOSED = "editor_closed"
AWAITING_RETRY_ACK = "awaiting_retry_ack"
DONE = "done"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of the most recent upload: the stored card or the error."""

    card: Card | None = None
    error: CliError | None = None

    @property
    def ok(self):
        return self.error is None


def resolve_editor():
    """$EDITOR, then TRELLO_EDITOR from .env, then vi."""
    return os.environ.get("EDITOR") or config.EDITOR or config.DEFAULT_EDITOR


class EditSession:
    """One editing session for one card.

    ``outcome`` is None until an upload has been attempted. ``working`` is
    the in-memory copy that was last sent (or is about to be sent).
    """

    def __init__(self, card, update=None, editor=None):
        self.card = card
        self.update = update or entities.update_card
        self.editor = editor or resolve_editor()
        self.working = card
        self.outcome: SyncOutcome | None = None
        self.state = IDLE
        self.path: str | None = None
        self._process: subprocess.Popen | None = None

    # -- lifecycle ---------------------------------------------------------

    def run(self):
        """Edit until the editor exits with nothing left to retry.

        Returns the last SyncOutcome, or None when nothing was uploaded.
        """
        _log.debug("edit_session_start", card_id=self.card.id, editor=self.editor)
        try:
            self._create_scratch()
            while True:
                self._open_editor()
                self._poll_until_exit()
                if not self._ask_retry():
                    break
            self.state = DONE
            return self.outcome
        finally:
            self._release()

    def _create_scratch(self):
        rendered = render_card(self.card)
        try:
            fd, self.path = tempfile.mkstemp(suffix=SCRATCH_SUFFIX, prefix="trello-card-")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(rendered + "\n")
        except OSError as e:
            raise CliError(f"[ERROR] Could not create scratch file: {e}") from e
        # Baseline is the parsed rendering; an untouched file compares equal.
        try:
            self.working = self.card.with_contents(parse_card_contents(rendered.rstrip()))
        except ContentParseError:
            self.working = self.card
        _log.debug("scratch_created", path=self.path)

    def _open_editor(self):
        try:
            argv = shlex.split(self.editor)
        except ValueError as e:
            raise CliError(f"[ERROR] Invalid editor command '{self.editor}': {e}") from e
        if not argv:
            raise CliError("[ERROR] Editor command is empty. Set $EDITOR.")
        try:
            self._process = subprocess.Popen([*argv, self.path])
        except OSError as e:
            raise CliError(f"[ERROR] Could not start editor '{self.editor}': {e}") from e
        self.state = EDITOR_OPEN
        _log.debug("editor_started", argv=argv, pid=self._process.pid)

    def _poll_until_exit(self):
        while True:
            self.state = POLLING
            _log.debug("sleep", seconds=POLL_INTERVAL_SECONDS)
            time.sleep(POLL_INTERVAL_SECONDS)
            # Sample exit status before reading so the last read after exit
            # sees everything the editor saved.
            exit_code = self._process.poll()
            self.poll_once()
            if exit_code is not None:
                _log.debug("editor_exited", code=exit_code)
                break
        self._process = None
        self.state = EDITOR_CLOSED

    def _ask_retry(self):
        """Decide what happens after the editor closed. True means reopen."""
        if self.outcome is None:
            _log.debug("edit_session_end", reason="no_changes")
            return False
        if self.outcome.ok:
            _log.debug("edit_session_end", reason="updated")
            return False

        self.state = AWAITING_RETRY_ACK
        print("An error occurred while trying to update the card.", file=sys.stderr)
        print(str(self.outcome.error), file=sys.stderr)
        print(file=sys.stderr)
        try:
            input(RETRY_PROMPT)
        except (EOFError, KeyboardInterrupt):
            print(file=sys.stderr)
            _log.debug("edit_session_end", reason="retry_declined")
            return False
        return True

    def _release(self):
        proc = self._process
        if proc is not None and proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        self._process = None
        if self.path:
            try:
                os.remove(self.path)
            except OSError as e:
                _log.debug("scratch_remove_failed", path=self.path, error=str(e))

    # -- polling -----------------------------------------------------------

    def _read_scratch(self):
        # Reopened on every poll; editors may replace the file on save.
        try:
            with open(self.path, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise CliError(f"[ERROR] Could not read scratch file {self.path}: {e}") from e

    def needs_update(self, contents):
        """Upload when the last attempt failed or the content changed."""
        if self.outcome is not None and not self.outcome.ok:
            return True
        return contents.name != self.working.name or contents.desc != self.working.desc

    def poll_once(self):
        """Read, parse, and upload if needed. Returns True when an upload ran."""
        try:
            text = self._read_scratch()
        except UnicodeDecodeError as e:
            # Not valid UTF-8 yet, possibly caught mid-save.
            _log.debug("decode_failed", error=str(e))
            return False
        # Editors commonly append a trailing newline.
        try:
            contents = parse_card_contents(text.rstrip())
        except ContentParseError as e:
            _log.debug("parse_failed", error=str(e))
            return False
        if not self.needs_update(contents):
            return False

        self.working = self.working.with_contents(contents)
        self.state = UPDATING
        _log.debug("updating_card", card_id=self.working.id, name=self.working.name)
        try:
            stored = self.update(self.working)
        except CliError as e:
            self.outcome = SyncOutcome(error=e)
            _log.debug("update_failed", card_id=self.working.id, error=str(e))
        else:
            self.outcome = SyncOutcome(card=stored)
            _log.debug("update_ok", card_id=self.working.id)
        self.state = POLLING
        return True


def edit_card(card, update=None, editor=None):
    """Run an interactive edit session for *card*.

    Raises CliError when the session ended with an unsaved failed update.
    """
    outcome = EditSession(card, update=update, editor=editor).run()
    if outcome is not None and not outcome.ok:
        raise CliError(f"[ERROR] Card changes were not saved.\n{outcome.error}")
    return outcome
