"""CLI entrypoint for Site Assistant."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Optional

import requests
import typer

from site_assistant.client.assistant import DEFAULT_HOST, AssistantClient, StreamingMessage
from site_assistant.client.replies import strip_citation_markers

app = typer.Typer(name="sitea", help="Site Assistant command-line interface")
documents_app = typer.Typer(name="documents", help="Manage the scraped corpus")
app.add_typer(documents_app, name="documents")


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("SITEA_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    try:
        resp = requests.request(method, url, **kwargs)
    except requests.RequestException as exc:
        typer.echo(f"Request failed: {exc}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def build(
    path: Optional[Path] = typer.Option(None, "--path", help="Scraped text file to index"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Rebuild the vector index from the scraped corpus."""
    body: dict[str, object] = {}
    if path:
        body["path"] = str(path.expanduser().resolve())
    resp = _request("POST", "/api/faiss/build", host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def status(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Show whether the server has an index loaded."""
    resp = _request("GET", "/api/faiss/status", host=host, timeout=30)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    k: int = typer.Option(4, "--k", help="Number of results to return"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Return the nearest chunks for a query."""
    resp = _request("POST", "/api/faiss/search", host=host, json={"query": q, "k": k})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def answer(
    q: str = typer.Argument(..., help="Question text"),
    k: int = typer.Option(4, "--k", help="Number of context chunks"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask for a grounded answer as a single JSON response."""
    resp = _request("POST", "/api/faiss/answer", host=host, json={"query": q, "k": k})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def ask(
    q: str = typer.Argument(..., help="Question text"),
    k: int = typer.Option(4, "--k", help="Number of context chunks"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Try the streaming endpoint first"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask like the site widget does, falling back to local matching."""
    renderer = _LiveRenderer()
    retries: list = []

    def on_toast(text: str, retry) -> None:
        typer.secho(text, err=True, fg=typer.colors.YELLOW)
        retries.append(retry)

    client = AssistantClient(base_url=_resolve_host(host), k=k, on_update=renderer, on_toast=on_toast)
    message = client.ask(q, stream=stream)
    renderer.finish(message)
    if retries and sys.stdin.isatty() and typer.confirm("Retry streaming?", default=False):
        renderer.reset()
        if retries[-1]():
            renderer.finish(message)
        else:
            typer.secho("Streaming is still unavailable.", err=True, fg=typer.colors.RED)


@documents_app.command("import")
def import_documents(
    file: Path = typer.Argument(..., help="JSON array of {text, source} objects"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Replace the server's scraped corpus."""
    try:
        payload = json.loads(file.expanduser().read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        typer.echo(f"Cannot read {file}: {exc}", err=True)
        raise typer.Exit(code=1)
    if not isinstance(payload, list):
        typer.echo("Documents file must contain a JSON array", err=True)
        raise typer.Exit(code=1)
    resp = _request("PUT", "/api/documents", host=host, json=payload)
    typer.echo(json.dumps({"count": resp.json()["count"]}))


@documents_app.command("list")
def list_documents(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Print the scraped corpus."""
    resp = _request("GET", "/api/documents", host=host, timeout=30)
    typer.echo(json.dumps(resp.json(), indent=2))


class _LiveRenderer:
    """Echo streamed text as it grows."""

    def __init__(self) -> None:
        self._printed = 0

    def __call__(self, message: StreamingMessage) -> None:
        if message.origin != "stream":
            return
        if len(message.raw_text) < self._printed:
            self._printed = 0
        typer.echo(message.raw_text[self._printed :], nl=False)
        self._printed = len(message.raw_text)

    def reset(self) -> None:
        self._printed = 0

    def finish(self, message: StreamingMessage) -> None:
        if message.origin == "stream" or self._printed:
            typer.echo("")
        if message.origin != "stream":
            typer.echo(strip_citation_markers(message.raw_text))
        badge = "server context" if message.using_server else "local match"
        typer.secho(f"[{badge}]", fg=typer.colors.BLUE)
        for rank, citation in enumerate(message.citations, start=1):
            label = citation.title or "Section"
            link = f" <{citation.link}>" if citation.link else ""
            typer.echo(f"  [#{rank}] {label}{link} (score {citation.score:.3f})")


if __name__ == "__main__":
    app()
