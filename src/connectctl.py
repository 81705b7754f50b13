#!/usr/bin/env python3
"""
CLI tool for the Kafka Connect Operator
Inspects Kafka Connect and previews what the operator would change
"""

import json
import os
from urllib.parse import quote

import click
import requests
import yaml
from tabulate import tabulate

from connectors import ConnectorParseError, parse_configmap, parse_connector
from initial_reconciler import find_orphaned_connectors
from plugins.clients.kafka_connect import desired_config

KAFKA_CONNECT_URL = os.getenv("BASE_URL", "http://localhost:9000")
OPERATOR_URL = os.getenv("OPERATOR_URL", "http://localhost:8080")


class KafkaConnectCLI:
    """Synchronous client for the Kafka Connect REST API"""

    def __init__(self, base_url: str = KAFKA_CONNECT_URL):
        self.base_url = base_url.rstrip("/")

    def _make_request(self, method: str, endpoint: str, allow_404=False, **kwargs):
        """Make HTTP request to the API"""
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.request(method, url, timeout=30, **kwargs)
            if allow_404 and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            click.echo(f"Error: {e}", err=True)
            if hasattr(e, "response") and e.response is not None:
                try:
                    error_detail = e.response.json()
                    click.echo(f"Detail: {error_detail}", err=True)
                except (ValueError, json.JSONDecodeError):
                    click.echo(f"Response: {e.response.text}", err=True)
            raise click.exceptions.Exit(1)

    def list_names(self):
        return self._make_request("GET", "/connectors")

    def list_statuses(self):
        return self._make_request("GET", "/connectors", params={"expand": "status"})

    def get_connector(self, name: str):
        return self._make_request(
            "GET", f"/connectors/{quote(name, safe='')}", allow_404=True
        )


def load_connectors(filename):
    """Load connector definitions from a JSON or YAML file.

    Accepts a single ``{name, config}`` object, a list of them, or a
    Kubernetes ConfigMap manifest (one connector per data entry).
    """
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            documents = [d for d in yaml.safe_load_all(f) if d is not None]
        else:
            documents = [json.load(f)]

    connectors = []
    for document in documents:
        if isinstance(document, list):
            connectors.extend(parse_connector(item) for item in document)
        elif isinstance(document, dict) and document.get("kind") == "ConfigMap":
            connectors.extend(parse_configmap(document))
        else:
            connectors.append(parse_connector(document))
    return connectors


@click.group()
@click.option(
    "--url",
    default=KAFKA_CONNECT_URL,
    show_default=True,
    help="Kafka Connect REST API base URL",
)
@click.pass_context
def cli(ctx, url):
    """Kafka Connect Operator CLI - inspect connectors and preview reconciliation"""
    ctx.obj = KafkaConnectCLI(url)


@cli.command(name="list")
@click.pass_obj
def list_connectors(client):
    """List connectors in Kafka Connect with their state"""
    result = client.list_statuses() or {}

    headers = ["Name", "Type", "State", "Worker", "Tasks"]
    rows = []
    for name in sorted(result):
        status = result[name].get("status", {})
        connector = status.get("connector", {})
        tasks = status.get("tasks", [])
        task_states = ", ".join(f"{t.get('id')}:{t.get('state')}" for t in tasks)
        rows.append(
            [
                name,
                status.get("type", ""),
                connector.get("state", ""),
                connector.get("worker_id", ""),
                task_states or "-",
            ]
        )

    if rows:
        click.echo(tabulate(rows, headers=headers, tablefmt="grid"))
    else:
        click.echo("No connectors found")


@cli.command()
@click.argument("name")
@click.option("--output", "-o", type=click.Choice(["yaml", "json"]), default="yaml")
@click.pass_obj
def get(client, name, output):
    """Show the configuration of a connector"""
    result = client.get_connector(name)
    if result is None:
        click.echo(f"Connector {name} not found", err=True)
        raise click.exceptions.Exit(1)

    data = {"name": result.get("name", name), "config": result.get("config", {})}
    if output == "json":
        click.echo(json.dumps(data, indent=2, sort_keys=True))
    else:
        click.echo(yaml.safe_dump(data, default_flow_style=False))


@cli.command()
@click.argument("filenames", nargs=-1, required=True, type=click.Path(exists=True))
@click.pass_obj
def plan(client, filenames):
    """Preview the initial reconciliation for connectors defined in files"""
    desired = []
    for filename in filenames:
        try:
            desired.extend(load_connectors(filename))
        except (ConnectorParseError, ValueError, yaml.YAMLError) as e:
            click.echo(f"Error: {filename}: {e}", err=True)
            raise click.exceptions.Exit(1)

    remote_names = client.list_names() or []

    rows = []
    for connector in desired:
        remote = client.get_connector(connector.name)
        if remote is None:
            action = "create"
        elif remote.get("config") == desired_config(connector):
            action = "unchanged"
        else:
            action = "update"
        rows.append([connector.name, action])

    for name in find_orphaned_connectors(desired, remote_names):
        rows.append([name, "delete"])

    click.echo(tabulate(rows, headers=["Connector", "Action"], tablefmt="grid"))

    changes = sum(1 for _, action in rows if action != "unchanged")
    click.echo(f"\n{changes} change(s), {len(rows) - changes} unchanged")


@cli.command()
@click.option(
    "--operator-url",
    default=OPERATOR_URL,
    show_default=True,
    help="Operator observability server URL",
)
def status(operator_url):
    """Show liveness and readiness of the operator"""
    base = operator_url.rstrip("/")
    healthy = True
    for probe in ("isalive", "isready"):
        try:
            response = requests.get(f"{base}/internal/{probe}", timeout=5)
            ok = response.status_code == 200
            detail = response.text.strip()
        except requests.exceptions.RequestException as e:
            ok = False
            detail = str(e)
        healthy = healthy and ok
        click.echo(f"{'✓' if ok else '✗'} {probe}: {detail}")

    if not healthy:
        raise click.exceptions.Exit(1)


if __name__ == "__main__":
    cli()
