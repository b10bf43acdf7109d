from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from idlemmo.application.services.game_session import GameSession
from idlemmo.application.services.session_manager import TwoFactorChallenge
from idlemmo.domain.models.skill import FilterBy, SkillConfig, SkillType


_CONSOLE = Console()
_MENU_OPTIONS = (
    "Add or log in to an IdleMMO account",
    "Recheck stored accounts and remove inactive ones",
    "Train the best available skill on a stored account",
    "Quit",
)


def prompt_two_factor_code(challenge: TwoFactorChallenge, console: Optional[Console] = None) -> int:
    console = console or _CONSOLE
    if challenge.is_retry:
        console.print("[yellow]The code was not accepted, check your email and try again.[/yellow]")
    return IntPrompt.ask("Two-Factor Code", console=console)


def add_account(game: GameSession, console: Optional[Console] = None) -> None:
    console = console or _CONSOLE
    console.print("Please enter your IdleMMO credentials:")
    email = Prompt.ask("Email", console=console)
    password = Prompt.ask("Password", password=True, console=console)
    account = game.session.add_account(
        email,
        password,
        lambda challenge: prompt_two_factor_code(challenge, console),
    )
    console.print(f"[green]Account {account.masked_email} stored with id {account.id}.[/green]")


def recheck_accounts(game: GameSession, console: Optional[Console] = None) -> None:
    console = console or _CONSOLE
    table = Table(title="Stored accounts")
    table.add_column("Id", justify="right")
    table.add_column("Email")
    table.add_column("Session")
    for account in game.session.list_accounts():
        valid = game.session.load_account(account)
        table.add_row(str(account.id), account.masked_email, "[green]valid[/green]" if valid else "[red]removed[/red]")
    console.print(table)


def train_best_skill(game: GameSession, console: Optional[Console] = None) -> None:
    console = console or _CONSOLE
    accounts = game.session.list_accounts()
    if not accounts:
        console.print("[yellow]No stored accounts. Add one first.[/yellow]")
        return

    for index, account in enumerate(accounts, start=1):
        console.print(f"{index}. {account.masked_email}")
    picked = IntPrompt.ask("Account", choices=[str(index) for index in range(1, len(accounts) + 1)], console=console)
    skill_name = Prompt.ask(
        "Skill",
        choices=[skill.value for skill in SkillType.scrapable()],
        default=SkillType.WOODCUTTING.value,
        console=console,
    )
    ranking = Prompt.ask(
        "Prefer",
        choices=[FilterBy.HIGHEST_LEVEL_REQUIRED.value, FilterBy.LOWEST_LEVEL_REQUIRED.value],
        default=FilterBy.HIGHEST_LEVEL_REQUIRED.value,
        console=console,
    )

    if not game.session.load_account(accounts[picked - 1]):
        console.print("[red]Stored session is no longer valid; the account was removed.[/red]")
        return

    started = game.actions.start_skill(SkillConfig(skill_type=SkillType(skill_name), filter_by=FilterBy(ranking)))
    if started is None:
        console.print("[yellow]Nothing eligible to train for that skill.[/yellow]")
        return
    console.print(
        Panel.fit(
            f"{started.choice.item.name} at {started.choice.location.name}\n{started.message}",
            title="[bold yellow]Skill started[/bold yellow]",
            border_style="green",
        )
    )


def main_menu(game: GameSession, console: Optional[Console] = None) -> None:
    console = console or _CONSOLE
    handlers = (add_account, recheck_accounts, train_best_skill)
    while True:
        for index, label in enumerate(_MENU_OPTIONS, start=1):
            console.print(f"{index}. {label}")
        choice = IntPrompt.ask(
            "Select",
            choices=[str(index) for index in range(1, len(_MENU_OPTIONS) + 1)],
            console=console,
        )
        if choice == len(_MENU_OPTIONS):
            return
        handlers[choice - 1](game, console)
