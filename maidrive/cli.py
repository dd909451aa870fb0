"""MAi Drive terminal front-end"""

from pathlib import Path
from typing import Callable, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from .app import MaiDriveApp
from .auth.session import Route
from .auth.workflow import AuthPhase
from .i18n.language import Language
from .models.auth import UserType
from .models.ui_state import CodeSent, Failed, Initial, Loading, Registered, ScreenState, Verified
from .utils.exceptions import ConfigError, MaiDriveError

console = Console()

QUIT_COMMANDS = {"q", "quit", "exit"}


class MaiDriveTerminal:
    """Drives the sign-in flow and the home screen from the terminal"""

    def __init__(self, app: MaiDriveApp):
        self.app = app
        self.running = True
        self._unsubscribe_language: Optional[Callable[[], None]] = None

    @property
    def _justify(self) -> str:
        return "right" if self.app.language.is_rtl else "left"

    def _print(self, message: str, style: str = "") -> None:
        console.print(Text(message, style=style, justify=self._justify))

    def _on_language_change(self, language: Language) -> None:
        direction = "right-to-left" if language.is_rtl else "left-to-right"
        self._print(f"Language set to {language.display_name} ({direction})", style="bold cyan")

    def render_state(self, state: ScreenState) -> None:
        if isinstance(state, Initial):
            return
        elif isinstance(state, Loading):
            self._print("Please wait...", style="dim")
        elif isinstance(state, CodeSent):
            if state.notification_text:
                self._print(state.notification_text, style="green")
            if self.app.settings.dev.show_verification_code and state.verification_code:
                self._print(f"[dev] verification code: {state.verification_code}", style="yellow")
        elif isinstance(state, Verified):
            if state.requires_registration:
                self._print("Phone verified. Complete your profile to continue.", style="green")
            else:
                self._print("Welcome back!", style="bold green")
        elif isinstance(state, Registered):
            self._print("Registration complete.", style="bold green")
        elif isinstance(state, Failed):
            self._print(state.message, style="bold red")
        else:
            raise TypeError(f"Unhandled screen state: {state!r}")

    def _ask(self, label: str, choices: Optional[List[str]] = None, default: str = "") -> Optional[str]:
        """Prompt for input; returns None when the user asked to quit."""
        if choices:
            answer = Prompt.ask(label, choices=choices + ["q"], default=default)
        else:
            answer = Prompt.ask(label, default=default, show_default=False)
        if answer.strip().lower() in QUIT_COMMANDS:
            self.running = False
            return None
        return answer

    def _submit(self, action: Callable[[], object]) -> None:
        try:
            action()
        except MaiDriveError as e:
            self._print(str(e), style="bold red")
            return
        self.render_state(self.app.workflow.state)

    def _logout(self) -> None:
        try:
            self.app.logout()
        except MaiDriveError as e:
            self._print(str(e), style="bold red")

    def choose_language(self) -> None:
        table = Table(box=box.SIMPLE, show_header=False)
        for index, language in enumerate(Language, start=1):
            marker = "*" if language is self.app.language.current else " "
            table.add_row(f"{marker} {index}", language.display_name, language.code)
        console.print(table)
        choice = Prompt.ask("Language", choices=[lang.code for lang in Language], default=self.app.language.current.code)
        self.app.language.set_language(Language.from_code(choice))

    def show_phone_step(self) -> None:
        console.print(Panel("Sign in with your phone number", style="bold blue", box=box.ROUNDED))
        user_type = self._ask(
            "Account type",
            choices=[t.value for t in UserType],
            default=UserType.PASSENGER.value,
        )
        if user_type is None:
            return
        phone = self._ask("Phone number (07XXXXXXXX), 'lang' to change language")
        if phone is None:
            return
        if phone.strip().lower() == "lang":
            self.choose_language()
            return
        self._submit(lambda: self.app.workflow.submit_phone(phone, UserType(user_type)))

    def show_code_step(self) -> None:
        phone = self.app.workflow.context.phone_number
        console.print(Panel(f"Enter the 6-digit code sent to {phone}", style="bold blue", box=box.ROUNDED))
        code = self._ask("Verification code, 'back' to change number")
        if code is None:
            return
        if code.strip().lower() == "back":
            self._logout()
            return
        self._submit(lambda: self.app.workflow.submit_code(code))

    def show_profile_step(self) -> None:
        console.print(Panel("Complete your profile", style="bold blue", box=box.ROUNDED))
        first_name = self._ask("First name")
        if first_name is None:
            return
        last_name = self._ask("Last name (optional)")
        if last_name is None:
            return
        email = self._ask("Email (optional)")
        if email is None:
            return
        self._submit(lambda: self.app.workflow.submit_profile(first_name, last_name, email))

    def show_auth(self) -> None:
        phase = self.app.workflow.phase
        if phase == AuthPhase.AWAITING_PHONE:
            self.show_phone_step()
        elif phase == AuthPhase.AWAITING_CODE:
            self.show_code_step()
        elif phase == AuthPhase.AWAITING_PROFILE:
            self.show_profile_step()
        else:
            # Token expired while the workflow still considers itself authenticated
            self._print("Your session has expired. Please sign in again.", style="yellow")
            self._logout()

    def show_main(self) -> None:
        session = self.app.session
        user = session.user
        name = " ".join(p for p in ((user.first_name, user.last_name) if user else ()) if p) or "there"

        table = Table(box=box.SIMPLE, show_header=False)
        table.add_row("User type", session.user_type.value if session.user_type else "-")
        table.add_row("Phone", user.phone_number if user else "-")
        table.add_row("Language", self.app.language.current.display_name)

        console.print(Panel(Text(f"Hello, {name}!", justify="center"), title="MAi Drive", style="bold green", box=box.DOUBLE))
        console.print(table)
        choice = Prompt.ask("[l]anguage, [o] log out, [q]uit", choices=["l", "o", "q"], default="q")
        if choice == "l":
            self.choose_language()
        elif choice == "o":
            self._logout()
            self._print("Logged out.", style="yellow")
        else:
            self.running = False

    def run(self) -> None:
        self._unsubscribe_language = self.app.language.subscribe(self._on_language_change)
        try:
            while self.running:
                if self.app.route() == Route.MAIN:
                    self.show_main()
                else:
                    self.show_auth()
        except KeyboardInterrupt:
            console.print()
        finally:
            if self._unsubscribe_language:
                self._unsubscribe_language()
            self.app.close()


def main(settings_path: Optional[str] = None) -> int:
    try:
        app = MaiDriveApp(Path(settings_path) if settings_path else None).initialize()
    except ConfigError as e:
        console.print(f"[bold red]✗ Configuration error: {e}[/bold red]")
        return 1
    MaiDriveTerminal(app).run()
    return 0
