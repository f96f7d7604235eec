from __future__ import annotations

from dataclasses import replace
from typing import Optional

import click

from . import db
from .browser import QuestionBrowser
from .errors import StudyHelperError
from .fetcher import FetchFailed, StudyFetcher, SubjectsFetched
from .importer import ImportMerger
from .records import SortOrder
from .settings import Settings
from .subjects import SubjectListController

ORDER_CHOICES = click.Choice([order.value for order in SortOrder])


class CliContext:
    def __init__(self, settings: Settings, store: Optional[db.StudyStore] = None) -> None:
        self.settings = settings
        self.store = store or db.StudyStore.for_path(settings.db_path)

    def controller(self, order: Optional[str] = None) -> SubjectListController:
        sort_order = SortOrder(order) if order else self.settings.subject_order
        controller = SubjectListController(self.store, sort_order, self.settings.default_question)
        controller.load()
        return controller

    def index_of(self, controller: SubjectListController, text: str) -> int:
        for index, subject in enumerate(controller.subjects):
            if subject.text == text:
                return index
        raise click.ClickException(f"Subject '{text}' not found")


@click.group()
@click.option("--db", "db_path", default=None, help="SQLite database path (defaults to $STUDY_HELPER_DB)")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[str]) -> None:
    """Study subjects with question/answer flashcards."""
    if ctx.obj is None:
        settings = Settings.from_env()
        if db_path:
            settings = replace(settings, db_path=db_path)
        ctx.obj = CliContext(settings)


@cli.command("init-db")
@click.option("--no-seed", is_flag=True, help="Do not add the starter subjects")
@click.pass_obj
def init_db(obj: CliContext, no_seed: bool) -> None:
    """Initialize the study database."""
    if not no_seed and db.seed_starter_data(obj.store):
        click.echo("Database initialized with starter subjects.")
    else:
        click.echo("Database initialized.")


@cli.command("subjects")
@click.option("--order", type=ORDER_CHOICES, default=None, help="Sort order for the listing")
@click.pass_obj
def list_subjects(obj: CliContext, order: Optional[str]) -> None:
    """List subjects."""
    controller = obj.controller(order)
    if not controller.subjects:
        click.echo("No subjects yet. Add one with 'add-subject'.")
        return
    for subject in controller.subjects:
        click.echo(subject.text)


@cli.command("add-subject")
@click.argument("text")
@click.pass_obj
def add_subject(obj: CliContext, text: str) -> None:
    """Add a new subject."""
    subject = obj.controller().add_subject(text)
    if subject is None:
        click.echo("Subject text is empty (skipped).")
    else:
        click.echo(f"Subject '{subject.text}' added.")


@cli.command("delete-subject")
@click.argument("text")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def delete_subject(obj: CliContext, text: str, yes: bool) -> None:
    """Delete a subject and all of its questions."""
    controller = obj.controller()
    controller.select_for_action(obj.index_of(controller, text))
    if not yes and not click.confirm(f"Delete '{text}' and all of its questions?"):
        controller.cancel_action()
        click.echo("Cancelled.")
        return
    try:
        controller.confirm_delete()
    except StudyHelperError as e:
        raise click.ClickException(str(e))
    click.echo(f"Subject '{text}' deleted.")


@cli.command("add-question")
@click.argument("subject")
@click.argument("text")
@click.argument("answer")
@click.pass_obj
def add_question(obj: CliContext, subject: str, text: str, answer: str) -> None:
    """Add a question to a subject."""
    controller = obj.controller()
    browser = controller.open_subject(obj.index_of(controller, subject))
    browser.add(text, answer)
    click.echo(f"Question added to '{subject}' ({len(browser.questions)} total).")


def _echo_view(browser: QuestionBrowser) -> None:
    view = browser.view()
    click.echo(view.title)
    if view.question is None:
        click.echo("No questions yet. Press 'a' to add one.")
        return
    click.echo(f"Q: {view.question.text}")
    if view.revealed:
        click.echo(f"A: {view.question.answer}")


STUDY_HELP = "[n]ext [p]revious [r]eveal [a]dd [e]dit [d]elete [u]ndo [q]uit"


@cli.command("study")
@click.argument("subject")
@click.pass_obj
def study(obj: CliContext, subject: str) -> None:
    """Browse a subject's questions interactively."""
    controller = obj.controller()
    browser = controller.open_subject(obj.index_of(controller, subject))
    _echo_view(browser)
    while True:
        choice = click.prompt(STUDY_HELP, default="n", show_default=False).strip().lower()
        try:
            if choice == "q":
                break
            elif choice == "n":
                browser.next()
            elif choice == "p":
                browser.previous()
            elif choice == "r":
                browser.toggle_reveal()
            elif choice == "a":
                draft = browser.new_question()
                text = click.prompt("Question", default=draft.text or None)
                answer = click.prompt("Answer", default="")
                browser.add(text, answer)
                click.echo("Question added.")
            elif choice == "e":
                current = browser.current
                if current is None:
                    click.echo("Nothing to edit.")
                    continue
                text = click.prompt("Question", default=current.text)
                answer = click.prompt("Answer", default=current.answer)
                browser.edit(text, answer)
                click.echo("Question updated.")
            elif choice == "d":
                browser.delete()
                click.echo("Question deleted. Press 'u' to undo.")
            elif choice == "u":
                browser.undo_delete()
            else:
                click.echo(STUDY_HELP)
                continue
        except StudyHelperError as e:
            click.echo(f"⚠️  {e}")
            continue
        _echo_view(browser)


@cli.command("import")
@click.argument("subjects", nargs=-1)
@click.option("--url", default=None, help="Remote study-set URL (defaults to $STUDY_HELPER_IMPORT_URL)")
@click.pass_obj
def import_subjects(obj: CliContext, subjects: tuple[str, ...], url: Optional[str]) -> None:
    """Import subjects from the remote source. Without arguments, list what is available."""
    fetcher = StudyFetcher(url or obj.settings.import_url)
    result = fetcher.fetch_subjects()
    if isinstance(result, FetchFailed):
        raise click.ClickException(f"{result.reason}. Try again later.")
    if not isinstance(result, SubjectsFetched):
        raise click.ClickException("Unexpected response from the remote source.")

    if not subjects:
        for candidate in result.subjects:
            click.echo(candidate.text)
        return

    wanted = set(subjects)
    candidates = [candidate for candidate in result.subjects if candidate.text in wanted]
    for missing in sorted(wanted - {candidate.text for candidate in candidates}):
        click.echo(f"'{missing}' is not offered by the remote source.")

    merger = ImportMerger(obj.store, fetcher)
    for outcome in merger.import_subjects(candidates):
        click.echo(outcome.message)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
