from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Type

import typer
from pymongo.errors import PyMongoError
from rich import print
from rich.markdown import Markdown
from rich.table import Table

from ideaforge import factory
from ideaforge.errors import IdeaForgeError, StorageUnavailable, UsageLedgerUnavailable
from ideaforge.models.conversation import Continuing
from ideaforge.models.idea import AppIdea
from ideaforge.models.usage import OperationKind
from ideaforge.models.validation import ValidationScorecard, Verdict
from ideaforge.orchestrator import ConversationState
from ideaforge.utils.logger import logger
from ideaforge.utils.mongodb_client import MongoDBClient

app = typer.Typer(help="Brainstorm, validate and enhance app ideas with an LLM.")

VERDICT_COLORS = {Verdict.GO: "green", Verdict.MAYBE: "yellow", Verdict.PIVOT: "red"}


def fail(error: IdeaForgeError):
    print(f"[bold red]{error.message}[/bold red]")
    raise typer.Exit(code=1)


@contextmanager
def open_store(unavailable: Type[StorageUnavailable] = StorageUnavailable):
    """
    Open the MongoDB client, exiting with a readable message if it is unreachable.

    Commands that check quota pass ``UsageLedgerUnavailable`` so the refusal
    names the usage check.
    """
    try:
        mongodb_client = MongoDBClient()
    except StorageUnavailable:
        fail(unavailable())

    with mongodb_client as store:
        try:
            yield store
        except PyMongoError as e:
            logger.error(f"MongoDB operation failed: {e}")
            fail(unavailable())


def render_scorecard(scorecard: ValidationScorecard):
    color = VERDICT_COLORS[scorecard.verdict]
    print(f"\n[bold]Overall score:[/bold] [bold {color}]{scorecard.overallScore}[/bold {color}]"
          f"  [bold {color}]{scorecard.verdict.value}[/bold {color}]\n")

    table = Table("Dimension", "Score", "Why")
    for label, detail in (
        ("Market need", scorecard.scores.marketNeed),
        ("Competition", scorecard.scores.competition),
        ("Monetization", scorecard.scores.monetization),
        ("Feasibility", scorecard.scores.feasibility),
    ):
        table.add_row(label, f"{detail.score:g}/10", detail.reason)
    print(table)

    if scorecard.competitors:
        print("\n[bold]Competitors[/bold]")
        for competitor in scorecard.competitors:
            print(f"- {competitor.name} ({competitor.url}) {competitor.pricing}: {competitor.weakness}")
    if scorecard.redditSignals:
        print("\n[bold]What users complain about[/bold]")
        for signal in scorecard.redditSignals:
            print(f"- {signal}")
    print(f"\n[bold]Your edge:[/bold] {scorecard.yourEdge}")
    print(f"[bold]Biggest risk:[/bold] {scorecard.biggestRisk}")
    print(f"[bold]Quick win:[/bold] {scorecard.quickWin}")
    if scorecard.pivotSuggestions:
        print("\n[bold]Pivot suggestions[/bold]")
        for suggestion in scorecard.pivotSuggestions:
            print(f"- {suggestion}")


@app.command()
def enhance(
    prompt_file: Path = typer.Argument(..., exists=True, readable=True, help="File holding the prompt to enhance"),
    user: str = typer.Option(..., "--user", help="Subject the usage is counted against"),
    output: Optional[Path] = typer.Option(None, help="Write the enhanced prompt to this file"),
):
    """
    Enhance a prompt through a short guided Q&A chat.
    """
    original_prompt = prompt_file.read_text(encoding="utf-8")

    with open_store(UsageLedgerUnavailable) as mongodb_client:
        try:
            session = factory.create_enhancement_session(
                user,
                original_prompt,
                factory.create_services(),
                factory.create_usage_ledger(mongodb_client),
            )
            result = session.start()
        except IdeaForgeError as e:
            fail(e)

        try:
            while session.state == ConversationState.AWAITING_USER_INPUT:
                if isinstance(result, Continuing):
                    print(Markdown(result.message))
                answer = typer.prompt("You")
                try:
                    result = session.submit(answer)
                except IdeaForgeError as e:
                    if session.state != ConversationState.AWAITING_USER_INPUT:
                        fail(e)
                    # Still awaiting input; let the user try again
                    print(f"[bold red]{e.message}[/bold red]")
                    result = None
        except (KeyboardInterrupt, typer.Abort):
            session.close()
            print("\n[yellow]Conversation closed.[/yellow]")
            raise typer.Exit(code=1)

        if session.state == ConversationState.TERMINAL:
            print(Markdown(session.artifact))
            if output:
                output.write_text(session.artifact, encoding="utf-8")
                print(f"[green]Enhanced prompt written to {output}[/green]")
        session.close()


@app.command()
def validate(
    user: str = typer.Option(..., "--user", help="Subject the usage is counted against"),
    name: str = typer.Option("", help="App name"),
    purpose: str = typer.Option("", help="What does your app do?"),
    audience: str = typer.Option("", help="Target audience"),
    features: str = typer.Option("", help="Main features, one per line"),
    design: str = typer.Option("", help="Design notes"),
    monetization: str = typer.Option("", help="Monetization strategy"),
    idea_id: Optional[str] = typer.Option(None, help="Cache the scorecard under this saved idea"),
):
    """
    Validate the market viability of an app idea.
    """
    idea = AppIdea(
        name=name,
        purpose=purpose,
        target_audience=audience,
        main_features=features,
        design_notes=design,
        monetization=monetization,
    )
    print("Analyzing your app idea... researching market, competitors and viability")
    with open_store(UsageLedgerUnavailable) as mongodb_client:
        try:
            flow = factory.create_validation_flow(
                user,
                factory.create_services(),
                factory.create_usage_ledger(mongodb_client),
                validation_store=mongodb_client,
            )
            scorecard = flow.run(idea, idea_id=idea_id)
        except IdeaForgeError as e:
            fail(e)
    render_scorecard(scorecard)


@app.command()
def scorecard(idea_id: str):
    """
    Show the cached scorecard of a saved idea.
    """
    with open_store() as mongodb_client:
        cached = mongodb_client.fetch_validation(idea_id)
    if not cached:
        print(f"[bold red]No validation saved for idea {idea_id}[/bold red]")
        raise typer.Exit(code=1)
    render_scorecard(ValidationScorecard.model_validate(cached))


@app.command()
def name(purpose: str = typer.Argument(..., help="What does your app do?")):
    """
    Generate a catchy app name.
    """
    try:
        print(factory.create_services().generation.generate_app_name(purpose))
    except IdeaForgeError as e:
        fail(e)


@app.command()
def prompt(
    name: str = typer.Option("", help="App name"),
    purpose: str = typer.Option("", help="What does your app do?"),
    audience: str = typer.Option("", help="Target audience"),
    features: str = typer.Option("", help="Main features, one per line"),
    design: str = typer.Option("", help="Design notes"),
    monetization: str = typer.Option("", help="Monetization strategy"),
):
    """
    Generate a build prompt for a no-code site builder.
    """
    idea = AppIdea(
        name=name,
        purpose=purpose,
        target_audience=audience,
        main_features=features,
        design_notes=design,
        monetization=monetization,
    )
    try:
        typer.echo(factory.create_services().generation.generate_build_prompt(idea))
    except IdeaForgeError as e:
        fail(e)


@app.command()
def idea(answers: Optional[str] = typer.Option(None, help="Your interests and needs, for a personalized idea")):
    """
    Generate a simple app idea.
    """
    try:
        generated = factory.create_services().generation.generate_idea(answers)
    except IdeaForgeError as e:
        fail(e)
    for field, value in generated.form_fields().items():
        print(f"[bold]{field.replace('_', ' ').title()}:[/bold] {value}")


@app.command()
def usage(user: str = typer.Option(..., "--user", help="Subject to report on")):
    """
    Show how many rate-limited operations remain today.
    """
    with open_store(UsageLedgerUnavailable) as mongodb_client:
        ledger = factory.create_usage_ledger(mongodb_client)
        try:
            for kind, limit in factory.daily_limits().items():
                remaining = ledger.remaining_today(user, kind, limit)
                typer.echo(f"{kind.value}: {remaining}/{limit} remaining today")
        except IdeaForgeError as e:
            fail(e)


@app.command("save-idea")
def save_idea(
    user: str = typer.Option(..., "--user"),
    name: str = typer.Option("", help="App name"),
    purpose: str = typer.Option("", help="What does your app do?"),
    audience: str = typer.Option("", help="Target audience"),
    features: str = typer.Option("", help="Main features, one per line"),
    design: str = typer.Option("", help="Design notes"),
    monetization: str = typer.Option("", help="Monetization strategy"),
    idea_id: Optional[str] = typer.Option(None, help="Update this saved idea instead of creating one"),
):
    """
    Save an idea, or update an existing one.
    """
    saved = AppIdea(
        id=idea_id,
        name=name,
        purpose=purpose,
        target_audience=audience,
        main_features=features,
        design_notes=design,
        monetization=monetization,
    )
    with open_store() as mongodb_client:
        idea_id = mongodb_client.save_idea({**saved.form_fields(), "id": saved.id}, user)
    typer.echo(idea_id)


@app.command("list-ideas")
def list_ideas(user: str = typer.Option(..., "--user")):
    """
    List saved ideas, newest first.
    """
    with open_store() as mongodb_client:
        ideas = mongodb_client.list_ideas(user)
    if not ideas:
        typer.echo("No saved ideas yet.")
        return
    for saved in ideas:
        created = saved["created_at"].strftime("%b %d, %Y") if saved.get("created_at") else ""
        typer.echo(f"{saved['idea_id']}  {created}  {saved.get('name') or 'Untitled App'}")


@app.command("delete-idea")
def delete_idea(idea_id: str, user: str = typer.Option(..., "--user")):
    """
    Delete a saved idea and its cached validation.
    """
    with open_store() as mongodb_client:
        deleted = mongodb_client.delete_idea(idea_id, user)
    if not deleted:
        print(f"[bold red]Idea {idea_id} not found[/bold red]")
        raise typer.Exit(code=1)
    typer.echo("Idea deleted successfully")


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    """
    Run the HTTP endpoints.
    """
    import uvicorn

    uvicorn.run("ideaforge.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
