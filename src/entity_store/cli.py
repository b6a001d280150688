"""CLI for entity store."""

from typing import Annotated, Any, Literal

import structlog
import yaml
from cyclopts import App, Parameter

from entity_store.class_commands import class_app
from entity_store.config import get_config, open_mailer, open_store
from entity_store.config_commands import config_app
from entity_store.errors import ConfigError
from entity_store.modes import RunMode, parse_mode
from entity_store.store import EntityClass, Store

logger = structlog.get_logger()

app = App(
    help="Entity Store - YAML backed entity classes with relations",
)

app.command(class_app)
app.command(config_app)

# Set by the --mode global option, None means "use the configured mode"
_mode: RunMode | None = None


def configure_logging(mode: RunMode) -> None:
    """Configure structlog with the level the run mode allows."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(mode.level))


def get_store() -> Store:
    """Get a store built from the configuration."""
    return open_store(get_config(), mode=_mode)


def parse_assignments(entity_class: EntityClass, assignments: tuple[str, ...]) -> dict[str, Any]:
    """Parse ``field=value`` arguments.

    Values are read as YAML scalars, so ``3`` is a number and ``true`` a
    boolean. ``@class:eid`` refers to a stored entity.
    """
    fields: dict[str, Any] = {}
    for assignment in assignments:
        if "=" not in assignment:
            raise ValueError(f"Expected field=value, got {assignment!r}")
        name, raw = assignment.split("=", 1)
        name = name.strip()

        if raw.startswith("@"):
            class_name, _, eid = raw[1:].partition(":")
            related = entity_class.store.get_class(class_name).get(eid)
            if related is None:
                raise ValueError(f"No {class_name} entity with id {eid!r}")
            fields[name] = related
        else:
            try:
                fields[name] = yaml.safe_load(raw) if raw else ""
            except yaml.YAMLError:
                fields[name] = raw
    return fields


def format_value(value: Any) -> str:
    return str(value) if value is not None else "~"


@app.command
def new(class_name: str, *assignments: str) -> None:
    """Create and save a new entity."""
    entity_class = get_store().get_class(class_name)
    entity = entity_class.new(**parse_assignments(entity_class, assignments))
    entity.save()
    print(f"Created {class_name} {entity.eid}")


@app.command
def show(class_name: str, eid: str) -> None:
    """Show the fields of an entity."""
    entity = get_store().get_class(class_name).get(eid)
    if entity is None:
        print(f"No {class_name} entity with id {eid}")
        return

    print(f"{class_name} {entity.eid}")
    for name, value in entity.to_dict().items():
        print(f"  {name}: {format_value(value)}")


@app.command
def put(class_name: str, eid: str, *assignments: str) -> None:
    """Write fields directly at an identifier."""
    entity_class = get_store().get_class(class_name)
    entity_class[eid] = parse_assignments(entity_class, assignments)
    print(f"Wrote {class_name} {eid}")


@app.command
def delete(class_name: str, *eids: str) -> None:
    """Delete one or more entities."""
    entity_class = get_store().get_class(class_name)
    deleted = sum(1 for eid in eids if entity_class.delete(eid))
    print(f"Deleted {deleted} entity(ies)")


@app.command
def mail(recipient: str, subject: str, body: str) -> None:
    """Send an email with the configured SMTP settings."""
    mailer = open_mailer(get_config(), mode=_mode)
    if mailer.send(recipient, subject, body):
        print(f"Sent email to {recipient}")
    else:
        print(f"Failed to send email to {recipient}, rerun with --mode stage for details")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    mode: Literal["benchmark", "debug", "stage", "live", "silent"] | None = None,
) -> None:
    """Main entry point with global options."""
    global _mode
    _mode = parse_mode(mode) if mode else None
    try:
        configure_logging(_mode or get_config().mode)
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        return
    app(tokens)


if __name__ == "__main__":
    app.meta()
