"""Create an ADMIN, STAFF or CUSTOMER account from the terminal

Usage: python scripts/create_user.py [email] [name] [role]
Missing values are prompted for; the password is always prompted.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from ecolimpio.auth.passwords import hash_password, validate_password
from ecolimpio.models.user import Role, User
from ecolimpio.storage import Storage
from ecolimpio.utils.config import config_manager
from ecolimpio.utils.exceptions import DuplicateError
from ecolimpio.utils.validation import is_valid_email, normalize_email, sanitize

console = Console()


def main() -> int:
    console.print(Panel.fit("EcoLimpio - Create User", style="bold blue"))
    settings = config_manager.load_settings()
    storage = Storage.open(settings.database.path)

    args = sys.argv[1:]
    email = args[0] if len(args) > 0 else Prompt.ask("Email")
    if not is_valid_email(email.strip()):
        console.print("[bold red]✗ Invalid email address[/bold red]")
        return 1
    email = normalize_email(email)

    if storage.users.get_by_email(email) is not None:
        console.print(f"[bold red]✗ A user with email {email} already exists[/bold red]")
        return 1

    name = sanitize(args[1] if len(args) > 1 else Prompt.ask("Name"))
    if not name:
        console.print("[bold red]✗ Name is required[/bold red]")
        return 1

    role_value = args[2].upper() if len(args) > 2 else Prompt.ask(
        "Role", choices=[r.value for r in Role], default=Role.ADMIN.value
    )
    try:
        role = Role(role_value)
    except ValueError:
        console.print(f"[bold red]✗ Unknown role: {role_value}[/bold red]")
        return 1

    password = Prompt.ask("Password", password=True)
    is_valid, errors = validate_password(password)
    if not is_valid:
        for error in errors:
            console.print(f"[red]  - {error}[/red]")
        return 1
    if Prompt.ask("Confirm password", password=True) != password:
        console.print("[bold red]✗ Passwords do not match[/bold red]")
        return 1

    user = User(
        email=email,
        password_hash=hash_password(password, rounds=settings.security.bcrypt_rounds),
        name=name,
        role=role,
    )
    try:
        storage.users.create(user)
    except DuplicateError as e:
        console.print(f"[bold red]✗ {e.message}[/bold red]")
        return 1

    console.print(f"[bold green]✓ {role.value} user created:[/bold green] {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
