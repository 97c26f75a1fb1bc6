"""Render access reports, policies and credentials to the terminal (Rich) or as JSON."""
from __future__ import annotations

import json
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .access import ALL_OPERATIONS, allowed_operations
from .documents import credentials_to_document
from .models import AuthClaims, Credentials, JWTClaims, ReadWriteTokenClaims, Resource


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------

class TextFormatter:
    """Renders results using Rich for human-readable terminal output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def render_access(self, resource: Resource, claims: Optional[AuthClaims]) -> None:
        c = self.console
        c.print(f"[bold]Resource:[/bold] {resource.id} [dim]({resource.type.value}/{resource.tool})[/dim]")
        c.print(f"[bold]Caller:  [/bold] {describe_caller(claims)}")
        c.print()

        allowed = allowed_operations(resource, claims) if claims is not None else ()
        table = Table(
            title="Permissions",
            show_header=True,
            header_style="bold",
            box=None,
            padding=(0, 2),
        )
        table.add_column("Operation", style="dim")
        table.add_column("Decision")
        for op in ALL_OPERATIONS:
            if op in allowed:
                table.add_row(op, Text("allowed", style="green"))
            else:
                table.add_row(op, Text("denied", style="red"))
        c.print(table)

    def render_policy(self, session_name: str, policy: dict) -> None:
        self.console.print(f"[bold]Session name:[/bold] {session_name}")
        self.console.print(
            Panel(json.dumps(policy, indent=2), title="[bold]Session policy[/bold]", expand=False)
        )

    def render_credentials(self, credentials: Credentials) -> None:
        c = self.console
        doc = credentials_to_document(credentials)
        c.print(f"[bold]Access key id:[/bold] {doc['accessKeyId']}")
        c.print(f"[bold]Expiration:   [/bold] {doc['expiration']}")
        if "bucket" in doc:
            c.print(f"[bold]Bucket:       [/bold] {doc['bucket']}")
        if "keyPrefix" in doc:
            c.print(f"[bold]Key prefix:   [/bold] {doc['keyPrefix']}")
        c.print("[dim]Use --output json to print the secret and session token.[/dim]")

    def render_resource(self, result: dict) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for key, value in result.items():
            if key == "accessRules":
                continue
            table.add_row(key, str(value))
        self.console.print(table)
        if "accessRules" in result:
            self.console.print()
            self.console.print("[bold]Access rules:[/bold]")
            for rule in result["accessRules"]:
                self.console.print(f"  {_describe_rule(rule)}")


class JsonFormatter:
    """Renders results as JSON documents to stdout."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render_access(self, resource: Resource, claims: Optional[AuthClaims]) -> None:
        allowed = allowed_operations(resource, claims) if claims is not None else ()
        self._print(
            {
                "resource": resource.id,
                "type": resource.type.value,
                "tool": resource.tool,
                "caller": describe_caller(claims),
                "allowed": list(allowed),
                "denied": [op for op in ALL_OPERATIONS if op not in allowed],
            }
        )

    def render_policy(self, session_name: str, policy: dict) -> None:
        self._print({"sessionName": session_name, "policy": policy})

    def render_credentials(self, credentials: Credentials) -> None:
        self._print(credentials_to_document(credentials))

    def render_resource(self, result: dict) -> None:
        self._print(result)

    def _print(self, data: dict) -> None:
        print(json.dumps(data, indent=self.indent, default=str))


def get_formatter(
    output: str, console: Optional[Console] = None
) -> TextFormatter | JsonFormatter:
    """Factory: ``'text'`` → TextFormatter, ``'json'`` → JsonFormatter."""
    if output == "json":
        return JsonFormatter()
    return TextFormatter(console=console)


def describe_caller(claims: Optional[AuthClaims]) -> str:
    if claims is None:
        return "anonymous"
    if isinstance(claims, ReadWriteTokenClaims):
        return "read-write token"
    if isinstance(claims, JWTClaims):
        label = f"{claims.user_id} @ {claims.platform_id}"
        if claims.target_user_id:
            label += f" (for {claims.target_user_id})"
        return label
    return "unknown"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _describe_rule(rule: dict) -> str:
    rule_type = rule.get("type")
    if rule_type == "user":
        return f"user {rule.get('role')}: {rule.get('userId')} @ {rule.get('platformId')}"
    if rule_type == "context":
        return f"context {rule.get('role')}: {rule.get('contextId')} @ {rule.get('platformId')}"
    if rule_type == "readWriteToken":
        return "read-write token"
    return str(rule)
