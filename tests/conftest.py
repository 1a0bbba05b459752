"""
Shared fixtures: a seeded in-memory SQLite database behind SQLModel and a
seeded MemoryPersistence.
"""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from starform.binding import CapabilityRegistry
from starform.persistence import (
    Cardinality, FieldMapping, MemoryPersistence, RelationMapping, ScalarType,
    SQLModelPersistence,
)

from .models import Article, Author, Book, Label, Listing, Member, Publisher, Tag


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        ada, grace = Author(name="Ada"), Author(name="Grace")
        python, sql, web = Tag(label="python"), Tag(label="sql"), Tag(label="web")
        session.add_all([ada, grace, python, sql, web])
        session.commit()

        article = Article(title="Hello", body="First post", views=3, published=True)
        article.author = ada
        article.tags = [python, sql]
        session.add(article)
        session.commit()

    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def persistence(engine):
    with SQLModelPersistence.opener(engine) as persistence:
        yield persistence


@pytest.fixture
def registry():
    return CapabilityRegistry()


@pytest.fixture
def memory():
    persistence = MemoryPersistence()
    publishers = persistence.register(Publisher, fields=[
        FieldMapping("name", ScalarType.STRING, 60, nullable=False),
    ])
    labels = persistence.register(Label, fields=[
        FieldMapping("caption", ScalarType.STRING, 20, nullable=False),
    ])
    books = persistence.register(
        Book,
        fields=[
            FieldMapping("id", ScalarType.INTEGER, nullable=False),
            FieldMapping("title", ScalarType.STRING, 40, nullable=False),
            FieldMapping("summary", ScalarType.TEXT, 500),
            FieldMapping("pages", ScalarType.INTEGER),
            FieldMapping("in_print", ScalarType.BOOLEAN, nullable=False),
        ],
        relations=[
            RelationMapping("publisher", Publisher, Cardinality.SINGLE, "publisher_id"),
            RelationMapping("labels", Label, Cardinality.COLLECTION),
        ],
    )
    persistence.register(
        Listing,
        relations=[RelationMapping("publisher", Publisher, Cardinality.SINGLE, "publisher_id")],
    )
    persistence.register(
        Member,
        fields=[FieldMapping("email", ScalarType.STRING, 120, nullable=False)],
        relations=[RelationMapping("labels", Label, Cardinality.COLLECTION)],
        primary_key="_key",
    )

    penguin = publishers.add(Publisher(name="Penguin"))
    publishers.add(Publisher(name="Faber"))
    classic = labels.add(Label(caption="classic"))
    labels.add(Label(caption="poetry"))
    fiction = labels.add(Label(caption="fiction"))
    books.add(Book(
        title="Dune",
        summary="Spice",
        pages=412,
        in_print=True,
        publisher=penguin,
        labels=[classic, fiction],
    ))
    return persistence
