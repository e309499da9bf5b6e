import contextlib

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from budget_tracker.term_ui import confirm, prompt_choice


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def test_confirm_yes():
    with pipe_session() as (pipe, sess):
        pipe.send_text("y\r")
        assert confirm("Proceed?", session=sess) is True


def test_confirm_no():
    with pipe_session() as (pipe, sess):
        pipe.send_text("no\r")
        assert confirm("Proceed?", default=True, session=sess) is False


def test_confirm_enter_uses_default():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        assert confirm("Proceed?", session=sess) is False
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        assert confirm("Proceed?", default=True, session=sess) is True


def test_confirm_rejects_other_answers_until_valid():
    with pipe_session() as (pipe, sess):
        # 'maybe' fails validation; clear the line and answer yes.
        pipe.send_text("maybe\r\x01\x0bYES\r")
        assert confirm("Proceed?", session=sess) is True


def test_prompt_choice_returns_canonical_option():
    with pipe_session() as (pipe, sess):
        pipe.send_text("takeaway coffee\r")
        result = prompt_choice(
            ["All", "Groceries", "Takeaway Coffee"], message="Category: ", session=sess
        )
        assert result == "Takeaway Coffee"


def test_prompt_choice_accepts_default():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        result = prompt_choice(["All", "Groceries"], message="Category: ", default="All", session=sess)
        assert result == "All"
