"""History command implementation - show recent builds from the build log."""

from rich.console import Console

from ..audit_log import format_build_record, read_build_log
from ..config import AUDIT_LOG_ENV, BuildConfig


def run_history(config: BuildConfig, last_n: int = 10) -> int:
    """Print the last `last_n` build records, oldest first."""
    console = Console(stderr=True)

    if config.audit_log_path is None:
        console.print(f"No audit log configured (use --audit-log or {AUDIT_LOG_ENV})", style="bold red")
        return 1

    records = read_build_log(config.audit_log_path, last_n=last_n)
    if not records:
        console.print(f"No builds recorded in {config.audit_log_path}", style="dim")
        return 0

    for record in records:
        print(format_build_record(record))
    return 0
