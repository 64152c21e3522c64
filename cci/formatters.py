"""Table rendering for pipelines and contexts."""

from datetime import datetime, timezone

from rich.table import Table

from .models import Context, EnvironmentVariable, Pipeline


def _rfc3339(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def pipeline_table(pipelines: list[Pipeline]) -> Table:
    table = Table()
    for header in (
        "ID",
        "Number",
        "Created At",
        "Updated At",
        "State",
        "Trigger Type",
        "Actor Login",
    ):
        table.add_column(header)

    for pipeline in pipelines:
        trigger = pipeline.trigger
        table.add_row(
            pipeline.id,
            str(pipeline.number),
            _rfc3339(pipeline.created_at),
            _rfc3339(pipeline.updated_at),
            pipeline.state.value,
            trigger.type.value if trigger else "",
            trigger.actor.login if trigger else "",
        )
    return table


def context_table(contexts: list[Context]) -> Table:
    table = Table()
    for header in ("ID", "Name", "Created At"):
        table.add_column(header)
    for context in contexts:
        table.add_row(context.id, context.name, _rfc3339(context.created_at))
    return table


def environment_variable_table(variables: list[EnvironmentVariable]) -> Table:
    table = Table()
    for header in ("Environment Variable", "Value"):
        table.add_column(header)
    # Values are write-only on the server.
    for variable in variables:
        table.add_row(variable.variable, "••••")
    return table
