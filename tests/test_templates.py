from __future__ import annotations

import threading
import time

from cvsmith.core.exceptions import CollisionError, NotFoundError, ValidationError
from cvsmith.core.models import Template, TemplateStyle, Theme
from cvsmith.core.settings import MemorySettingsBackend, SettingsStore
from cvsmith.templates import BUILTIN_IDS, TemplateRepository, builtin_templates


def _user_template(template_id: str = "mine", name: str = "Mine") -> Template:
    return Template(
        id=template_id,
        name=name,
        content="# Me",
        style=TemplateStyle(theme=Theme(primary_color="#010203")),
        category="Custom",
        tags=["personal"],
    )


def test_builtins_ship_with_content() -> None:
    templates = builtin_templates()
    assert [template.id for template in templates] == list(BUILTIN_IDS)
    assert BUILTIN_IDS == (
        "classic-professional",
        "modern-minimal",
        "academic",
        "creative-professional",
    )
    assert all(template.content.startswith("# ") for template in templates)
    creative = templates[-1]
    assert creative.style.theme.accent_color == "#38a169"
    assert ".cv-skill-level" in (creative.style.custom_css or "")


def test_builtins_are_handed_out_as_copies(repository: TemplateRepository) -> None:
    first = repository.get_by_id("academic")
    assert first is not None
    first.name = "Mutated"
    second = repository.get_by_id("academic")
    assert second is not None and second.name == "Academic CV"


def test_list_filters(repository: TemplateRepository) -> None:
    repository.add(_user_template())
    assert [t.id for t in repository.list_all()][-1] == "mine"
    assert {t.id for t in repository.list_by_category("Professional")} == {
        "classic-professional",
        "modern-minimal",
    }
    assert {t.id for t in repository.list_by_tag("formal")} == {"classic-professional", "academic"}
    assert [t.id for t in repository.list_by_tag("personal")] == ["mine"]


def test_add_twice_replaces_in_place(repository: TemplateRepository) -> None:
    repository.add(_user_template("a", "A"))
    repository.add(_user_template("b", "B"))
    outcome = repository.add(_user_template("a", "A2"))
    assert outcome.ok
    users = repository.list_user()
    assert [t.id for t in users] == ["a", "b"]
    assert users[0].name == "A2"


def test_add_rejects_builtin_ids(repository: TemplateRepository) -> None:
    outcome = repository.add(_user_template("academic", "Clash"))
    assert not outcome.ok
    assert isinstance(outcome.error, CollisionError)
    assert repository.list_user() == []


def test_get_by_id_prefers_builtins() -> None:
    backend = MemorySettingsBackend(
        {
            "templates": [
                {
                    "id": "academic",
                    "name": "Shadow",
                    "style": {"theme": {"primaryColor": "#000000"}},
                }
            ]
        }
    )
    store = SettingsStore(backend)
    store.load()
    repository = TemplateRepository(store)
    template = repository.get_by_id("academic")
    assert template is not None
    assert template.name == "Academic CV"


def test_delete(repository: TemplateRepository, backend: MemorySettingsBackend) -> None:
    repository.add(_user_template())
    saves = backend.saves
    assert repository.delete("classic-professional") is False
    assert repository.delete("nope") is False
    assert backend.saves == saves
    assert len(repository.list_all()) == 5
    assert repository.delete("mine") is True
    assert repository.get_by_id("mine") is None


def test_update_merges_fields(repository: TemplateRepository) -> None:
    repository.add(_user_template())
    outcome = repository.update("mine", {"description": "Updated", "previewImage": "p.png"})
    assert outcome.ok
    stored = repository.get_by_id("mine")
    assert stored is not None
    assert stored.description == "Updated"
    assert stored.preview_image == "p.png"
    assert stored.content == "# Me"


def test_update_failures_leave_state_alone(repository: TemplateRepository) -> None:
    repository.add(_user_template())
    missing = repository.update("ghost", {"name": "x"})
    assert isinstance(missing.error, NotFoundError)

    renamed = repository.update("mine", {"id": "other"})
    assert isinstance(renamed.error, ValidationError)

    invalid = repository.update("mine", {"name": ""})
    assert isinstance(invalid.error, ValidationError)
    assert repository.get_by_id("mine").name == "Mine"


def test_require(repository: TemplateRepository) -> None:
    assert repository.require("academic").ok
    outcome = repository.require("ghost")
    assert isinstance(outcome.error, NotFoundError)


def test_create_from_current(repository: TemplateRepository, store: SettingsStore) -> None:
    store.update(default_theme_color="#445566", default_font_family="Lato")
    outcome = repository.create_from_current("My Résumé", "desc", "# Me")
    template = outcome.unwrap()
    assert template.id == "user-template-my-resume-1700000000000"
    assert template.category == "Custom"
    assert template.tags == ["user-created"]
    assert template.style.theme.primary_color == "#445566"
    assert template.style.theme.body_font == "Lato"

    again = repository.create_from_current("My Résumé", "desc", "# Me").unwrap()
    assert again.id == "user-template-my-resume-1700000000000-2"
    assert len(repository.list_user()) == 2


def test_mutations_persist(repository: TemplateRepository, backend: MemorySettingsBackend) -> None:
    repository.add(_user_template())
    assert backend.payload is not None
    assert [entry["id"] for entry in backend.payload["templates"]] == ["mine"]


class _SlowStore(SettingsStore):
    def user_templates(self) -> list[Template]:
        templates = super().user_templates()
        time.sleep(0.05)
        return templates


def test_repositories_sharing_a_store_do_not_lose_writes() -> None:
    store = _SlowStore(MemorySettingsBackend())
    first = TemplateRepository(store)
    second = TemplateRepository(store)

    threads = [
        threading.Thread(target=first.add, args=(_user_template("a", "A"),)),
        threading.Thread(target=second.add, args=(_user_template("b", "B"),)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(template.id for template in store.user_templates()) == ["a", "b"]
    assert sorted(template.id for template in first.list_user()) == ["a", "b"]
