"""Entity class commands for entity store CLI."""

from cyclopts import App

class_app = App(name="class", help="Inspect and reset entity classes")


@class_app.command
def keys(class_name: str) -> None:
    """List the identifiers stored in a class."""
    from entity_store.cli import get_store

    eids = get_store().get_class(class_name).keys()
    if not eids:
        print(f"No {class_name} entities")
        return
    print(" ".join(eids))


@class_app.command(name="list")
def list_entities(class_name: str) -> None:
    """List all entities of a class."""
    from entity_store.cli import format_value, get_store

    entities = get_store().get_class(class_name).all()
    print(f"Found {len(entities)} {class_name} entity(ies):\n")
    for entity in entities:
        fields = ", ".join(f"{name}={format_value(value)}" for name, value in entity.to_dict().items())
        print(f"  {entity.eid}: {fields}")


@class_app.command
def destroy(class_name: str) -> None:
    """Remove every entity of a class and reset its identifiers."""
    from entity_store.cli import get_store

    get_store().create_class(class_name, destroy=True)
    print(f"Destroyed {class_name}")
