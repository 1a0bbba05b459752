"""
Tests for EntityBinder loading and default population.
"""

from dataclasses import dataclass
from datetime import date

import pytest

from starform.binding import BinderState, DatabaseMethod, EntityBinder
from starform.forms import Form

from .models import Article, Book, Label, Listing, Member


# Loading

def test_load_without_key_constructs_new_entity(memory):
    binder = EntityBinder(memory)
    book = binder.load(Book)

    assert isinstance(book, Book)
    assert book.id is None
    assert binder.database_method is DatabaseMethod.INSERT
    assert binder.state is BinderState.LOADED


def test_load_with_key_finds_entity(memory):
    binder = EntityBinder(memory)
    book = binder.load(Book, 1)

    assert book.title == "Dune"
    assert binder.key == 1
    assert binder.database_method is DatabaseMethod.UPDATE


def test_load_missing_entity(memory):
    binder = EntityBinder(memory)
    assert binder.load(Book, 99) is None
    assert binder.database_method is DatabaseMethod.NONE
    assert binder.state is BinderState.UNBOUND


def test_load_unknown_type_is_not_an_error(memory):
    class Unmapped:
        pass

    binder = EntityBinder(memory)
    assert binder.load(Unmapped, 1) is None
    assert binder.database_method is DatabaseMethod.NONE
    assert binder.load(None) is None
    assert binder.database_method is DatabaseMethod.NONE


def test_load_by_name_and_string_key(memory):
    binder = EntityBinder(memory)
    book = binder.load("Book", "1")
    assert book.title == "Dune"
    assert binder.entity_type is Book


@pytest.mark.parametrize("key, expected", [
    (None, DatabaseMethod.INSERT),
    ("", DatabaseMethod.INSERT),
    (1, DatabaseMethod.UPDATE),
    (404, DatabaseMethod.NONE),
])
def test_database_method_classification(persistence, key, expected):
    binder = EntityBinder(persistence)
    binder.load(Article, key)
    assert binder.database_method is expected


def test_load_joins_single_column_relations(persistence):
    binder = EntityBinder(persistence)
    article = binder.load(Article, 1)

    assert binder.relation_join_map() == {"author": "author_id"}
    # usable without the session once loaded
    persistence.session.expunge(article)
    assert article.author.name == "Ada"


# Populating

def _book_form():
    form = Form()
    form.add_text("title")
    form.add_textarea("summary")
    form.add_text("pages")
    form.add_checkbox("in_print")
    form.add_select("publisher", items={1: "Penguin", 2: "Faber"})
    form.add_multiselect("labels", items={1: "classic", 2: "poetry", 3: "fiction"})
    return form


def test_populate_scalar_defaults(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = _book_form()
    binder.populate_defaults(form, binder.entity, binder.relation_join_map())

    assert form["title"].value == "Dune"
    assert form["summary"].value == "Spice"
    assert form["pages"].value == 412
    # booleans become 0/1
    assert form["in_print"].default == 1
    assert form["in_print"].value is True
    assert form["publisher"].value == 1
    assert form["labels"].value == [1, 3]
    assert binder.state is BinderState.POPULATED


def test_populate_drops_stale_multiselect_members(memory):
    """Members missing from the offered items are silently dropped."""
    binder = EntityBinder(memory)
    book = binder.load(Book, 1)
    labels = memory.get_repository(Label)
    book.labels = labels.find_many([2, 3])

    form = Form()
    form.add_multiselect("labels", items={1: "classic", 2: "poetry"})
    binder.populate_defaults(form, book, binder.relation_join_map())

    assert form["labels"].value == [2]


def test_populate_skips_relation_key_missing_from_items(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = Form()
    form.add_select("publisher", items={2: "Faber"})
    binder.populate_defaults(form)
    assert form["publisher"].value is None


def test_populate_relation_key_into_text_control(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = Form()
    form.add_hidden("publisher")
    binder.populate_defaults(form)
    assert form["publisher"].value == 1


def test_populate_keeps_existing_values(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = _book_form()
    form["title"].set_default_value("Chosen by caller")

    binder.populate_defaults(form)
    assert form["title"].value == "Chosen by caller"


def test_populate_sets_each_control_once(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = _book_form()
    binder.populate_defaults(form)

    form["title"].set_value(None)
    binder.populate_defaults(form)
    assert form["title"].value is None


def test_populate_nested_group_controls(memory):
    binder = EntityBinder(memory)
    binder.load(Book, 1)
    form = Form()
    details = form.add_group("details", "Details")
    details.add_text("title")
    binder.populate_defaults(form)
    assert form["title"].value == "Dune"


def test_populate_mapping_relation_uses_join_map(memory):
    listing = memory.get_repository(Listing).add(Listing(publisher={"id": 2, "name": "Faber"}))
    binder = EntityBinder(memory)
    binder.load(Listing, listing.id)

    form = Form()
    form.add_select("publisher", items={1: "Penguin", 2: "Faber"})
    binder.populate_defaults(form, binder.entity, binder.relation_join_map())
    assert form["publisher"].value == 2

    # without the join map entry the mapping is not a relation value
    binder.load(Listing, listing.id)
    form = Form()
    form.add_select("publisher", items={1: "Penguin", 2: "Faber"})
    binder.populate_defaults(form, binder.entity, {})
    assert form["publisher"].value is None


def test_populate_through_getters(memory):
    member = Member()
    member.set_email("Ada@Example.com")
    member.add_labels(memory.get_repository(Label).find_many([1, 2]))
    memory.get_repository(Member).add(member)

    binder = EntityBinder(memory)
    binder.load(Member, member.get_id())
    form = Form()
    form.add_email("email")
    form.add_multiselect("labels", items={1: "classic", 2: "poetry", 3: "fiction"})
    binder.populate_defaults(form)

    assert form["email"].value == "ada@example.com"
    assert form["labels"].value == [1, 2]


def test_expose_id_adds_hidden_control(memory):
    binder = EntityBinder(memory, expose_id=True)
    binder.load(Book, 1)
    form = _book_form()
    binder.populate_defaults(form)

    assert form["id"].input_type == "hidden"
    assert form["id"].value == 1


def test_expose_id_keeps_existing_control(memory):
    binder = EntityBinder(memory, expose_id=True)
    binder.load(Book, 1)
    form = Form()
    existing = form.add_hidden("id")
    binder.populate_defaults(form)

    assert form["id"] is existing
    assert existing.value == 1


def test_populate_without_entity_does_nothing(memory):
    binder = EntityBinder(memory, expose_id=True)
    binder.load(Book, 99)
    form = _book_form()
    binder.populate_defaults(form)
    assert "id" not in form
    assert form["title"].value is None


def test_populate_from_sqlmodel_entity(persistence):
    binder = EntityBinder(persistence)
    binder.load(Article, 1)
    form = Form()
    form.add_text("title")
    form.add_text("views")
    form.add_checkbox("published")
    form.add_select("author", items={1: "Ada", 2: "Grace"})
    form.add_multiselect("tags", items={1: "python", 2: "sql", 3: "web"})
    binder.populate_defaults(form, binder.entity, binder.relation_join_map())

    assert form["title"].value == "Hello"
    assert form["views"].value == 3
    assert form["published"].default == 1
    assert form["author"].value == 1
    assert sorted(form["tags"].value) == [1, 2]


@dataclass
class Event:
    id: int = 1
    starts: date = date(2024, 5, 1)


def test_populate_date_values_as_is(memory):
    form = Form()
    form.add_text("starts")
    EntityBinder(memory).populate_defaults(form, Event())
    assert form["starts"].default == date(2024, 5, 1)
