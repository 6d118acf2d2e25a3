"""Delete every session, forcing all users to log in again

Run after changing the session or access-hash format.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.prompt import Confirm

from ecolimpio.storage import Storage
from ecolimpio.utils.config import config_manager

console = Console()


def main() -> int:
    settings = config_manager.load_settings()
    storage = Storage.open(settings.database.path)

    count = storage.sessions.count()
    if count == 0:
        console.print("[green]No sessions to delete[/green]")
        return 0

    force = "--yes" in sys.argv[1:]
    if not force and not Confirm.ask(f"Delete {count} session(s)? Every user will be logged out"):
        console.print("[yellow]Aborted[/yellow]")
        return 1

    deleted = storage.sessions.delete_all()
    console.print(f"[bold green]✓ Deleted {deleted} session(s)[/bold green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
