"""Rich terminal front end for a :class:`~biostat_quiz.quiz.session.QuizSession`.

The loop only translates console commands into session transitions and
re-renders from :meth:`QuizSession.display`; every rule about answering and
navigation lives in the session itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import LABELS, QuizMode, Question
from .scoring import feedback_for, format_elapsed, score, topic_breakdown
from .session import DisplayState, QuizSession, SessionOutcome

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit"]


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["select", "next", "prev", "finish", "quit"]
    choice: Optional[str] = None


@dataclass(frozen=True)
class QuizRunResult:
    outcome: Optional[SessionOutcome]
    exit_action: ExitAction


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"n", "next"}:
        return SessionCommand("next")
    if text in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if text in {"f", "finish"}:
        return SessionCommand("finish")
    if text in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.upper() in {label.value for label in LABELS}:
        return SessionCommand("select", text.upper())
    return None


def run_quiz_session(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
) -> QuizRunResult:
    """Drive an initialized session until the user finishes or quits.

    Quitting (including EOF or Ctrl-C) restarts the session so its timer
    does not outlive the run.
    """
    while True:
        render_question(console, session)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            session.restart()
            return QuizRunResult(None, "quit")
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending quiz without results.[/]")
            session.restart()
            return QuizRunResult(None, "quit")
        if command.type == "finish":
            outcome = session.finish()
            if outcome is not None:
                return QuizRunResult(outcome, "finished")
            console.print(
                "[yellow]You can finish once you reach the last question.[/]"
            )
            continue
        _apply_navigation(command, session, console)


def _apply_navigation(
    command: SessionCommand, session: QuizSession, console: Console
) -> None:
    if command.type == "select" and command.choice:
        if not session.select_option(command.choice):
            console.print(
                "[yellow]This question is already answered; "
                "your first choice stands.[/]"
            )
    elif command.type == "next":
        if not session.next():
            console.print(
                "[yellow]This is the last question. Type f to finish.[/]"
            )
    elif command.type == "prev":
        if not session.previous():
            console.print("[yellow]This is the first question.[/]")


def render_question(console: Console, session: QuizSession) -> None:
    view = session.display()
    if view is None:
        console.print(
            Panel("No quiz in progress.", title="Quiz", border_style="yellow")
        )
        return
    question = view.question
    header = Text.assemble(
        (f"Question {view.index + 1}", "bold cyan"),
        (f" / {view.total}", "dim"),
        ("  ", ""),
        (format_elapsed(session.elapsed_seconds), "magenta"),
    )
    console.print()
    console.rule(header)
    console.print(
        Text(f"{question.topic} · {question.kind.value}", style="dim")
    )
    console.print(Text(question.prompt, style="bold"))
    if question.statistical_output:
        console.print(
            Panel(
                Text(question.statistical_output),
                title="Statistical output",
                border_style="blue",
            )
        )
    if question.chart_markup:
        console.print(
            Panel(
                Text(question.chart_markup, style="dim"),
                title="Chart (SVG)",
                border_style="blue",
            )
        )

    console.print(_options_table(view))
    if view.show_explanation:
        console.print(_explanation_panel(view))

    finish_hint = ", f (finish)" if view.index == view.total - 1 else ""
    console.print(
        Text(
            f"Answered {session.answered_count}/{view.total} | "
            f"Commands: A-D, n (next), p (prev){finish_hint}, q (quit)",
            style="dim",
        )
    )


def _options_table(view: DisplayState) -> Table:
    question = view.question
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for label, text in question.options.items():
        marker = "•" if label == view.selected else " "
        row = Text(f"{marker} ")
        option_text = Text(text)
        if view.show_explanation:
            if label == question.correct_label:
                option_text.stylize("bold green")
            elif label == view.selected:
                option_text.stylize("bold red")
            else:
                option_text.stylize("dim")
        row += option_text
        table.add_row(label.value, row)
    return table


def _explanation_panel(view: DisplayState) -> Panel:
    question = view.question
    body = Text()
    verdict = "Correct!" if view.is_correct else "Incorrect."
    body.append(
        verdict + "\n",
        style="bold green" if view.is_correct else "bold red",
    )
    body.append(
        f"{question.correct_label.value}: {question.explanation.correct}\n"
    )
    for label in question.incorrect_labels():
        note = question.explanation.incorrect.get(label, "")
        if note:
            body.append(f"{label.value}: {note}\n", style="dim")
    return Panel(
        body,
        title="Explanation",
        border_style="green" if view.is_correct else "red",
    )


def render_results(
    console: Console,
    questions: Sequence[Question],
    outcome: SessionOutcome,
    mode: Optional[QuizMode],
) -> None:
    report = score(questions, outcome.answers)
    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Mode", mode.value if mode else "N/A")
    overview.add_row("Questions", str(report.total))
    overview.add_row(
        "Answered", str(sum(1 for a in outcome.answers if a.answered))
    )
    overview.add_row("Correct", str(report.correct_count))
    overview.add_row("Score", f"{report.percentage:.1f}%")
    overview.add_row("Time", format_elapsed(outcome.elapsed_seconds))
    console.print(overview)
    console.print(Text(feedback_for(report.percentage).message, style="bold"))

    per_topic = Table(title="Per topic", box=box.SIMPLE)
    per_topic.add_column("Topic")
    per_topic.add_column("Asked", justify="right")
    per_topic.add_column("Correct", justify="right")
    per_topic.add_column("Accuracy", justify="right")
    for entry in topic_breakdown(questions, outcome.answers):
        per_topic.add_row(
            entry.topic or "(unknown)",
            str(entry.asked),
            str(entry.correct),
            f"{entry.accuracy * 100:.1f}%",
        )
    console.print(per_topic)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct answer")
    responses.add_column("Result", justify="center")
    for idx, (question, answer) in enumerate(
        zip(questions, outcome.answers), start=1
    ):
        responses.add_row(
            str(idx),
            Text(question.prompt),
            answer.chosen_label.value if answer.chosen_label else "-",
            question.correct_label.value,
            "✅" if answer.is_correct else "❌",
        )
    console.print(responses)
