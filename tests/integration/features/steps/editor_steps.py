"""Steps driving TemplateEditor through ApiSession against the API under test."""

from __future__ import annotations

from typing import Any, Dict

from behave import given, then, when

from formbuilder.client import ApiSession, AuthClient, EditorState, TemplateClient, TemplateEditor
from formbuilder.logic.errors import ConflictError


def _session(context: Any, user: str) -> ApiSession:
    session = context.sessions.get(user)
    assert session is not None, f"user {user!r} is not signed in"
    return session


def _new_session(context: Any) -> ApiSession:
    return ApiSession(client=context.http)


def _email(context: Any, user: str) -> str:
    return f"{user}-{context.run_id}@example.com"


def _topics(context: Any) -> Dict[str, str]:
    if not hasattr(context, "topics"):
        context.topics = {}
    return context.topics


@given('a topic "{name}" exists')
def step_topic_exists(context: Any, name: str) -> None:
    admin = _new_session(context)
    result = admin.post(
        "/auth/register",
        json={"name": "admin", "email": _email(context, "admin"), "password": "secret123", "is_admin": True},
    )
    admin.token = result["token"]
    topic = admin.post("/topics", json={"name": f"{name} {context.run_id}"})
    _topics(context)[name] = topic["id"]
    context.sessions["admin"] = admin


@given('user "{user}" is signed in')
def step_user_signed_in(context: Any, user: str) -> None:
    session = _new_session(context)
    AuthClient(session).register(user, _email(context, user), "secret123")
    context.sessions[user] = session


@given('"{user}" opens a blank editor for topic "{topic}"')
def step_blank_editor(context: Any, user: str, topic: str) -> None:
    editor = TemplateEditor(TemplateClient(_session(context, user)), topic_id=_topics(context)[topic])
    editor.load()
    context.editors[user] = editor


@when('"{user}" sets the title to "{title}"')
def step_set_title(context: Any, user: str, title: str) -> None:
    context.editors[user].title = title


@when('"{user}" adds a "{slot_type}" field labelled "{label}"')
def step_add_field(context: Any, user: str, slot_type: str, label: str) -> None:
    context.editors[user].add_field(slot_type, label)


@when('"{user}" moves question {source:d} to position {target:d}')
def step_move_question(context: Any, user: str, source: int, target: int) -> None:
    context.editors[user].move_question(source - 1, target - 1)


@when('"{user}" submits the editor')
def step_submit(context: Any, user: str) -> None:
    context.saved = context.editors[user].submit()


@then('the editor of "{user}" is in state "{state}"')
def step_editor_state(context: Any, user: str, state: str) -> None:
    editor = context.editors[user]
    assert editor.state == state, f"expected {state}, got {editor.state} (last error: {editor.last_error!r})"


@then("the saved template has version {version:d}")
def step_saved_version(context: Any, version: int) -> None:
    assert context.saved is not None
    assert context.saved["version"] == version


@then('the saved question order is "{order}"')
def step_saved_order(context: Any, order: str) -> None:
    assert context.saved["question_order"] == order.split(",")


@given('"{user}" has saved a template titled "{title}" with a "{slot_type}" field')
def step_saved_template(context: Any, user: str, title: str, slot_type: str) -> None:
    templates = TemplateClient(_session(context, user))
    context.saved = templates.create(
        {
            "title": title,
            "topic_id": next(iter(_topics(context).values())),
            "fields": {f"custom{slot_type}1": {"enabled": True, "label": title}},
        }
    )


@given('"{user}" opens the saved template in editor "{name}"')
def step_open_saved(context: Any, user: str, name: str) -> None:
    editor = TemplateEditor(TemplateClient(_session(context, user)))
    editor.load(context.saved["id"])
    context.editors[name] = editor


@when('editor "{name}" renames the template to "{title}" and submits')
def step_rename_and_submit(context: Any, name: str, title: str) -> None:
    editor = context.editors[name]
    editor.title = title
    editor.submit()


@then('editor "{name}" is back in state "ready" with a version conflict')
def step_conflict(context: Any, name: str) -> None:
    editor = context.editors[name]
    assert editor.state == EditorState.READY
    assert isinstance(editor.last_error, ConflictError), repr(editor.last_error)
    assert editor.last_error.current_version == 2


@then('the stored template title is "{title}"')
def step_stored_title(context: Any, title: str) -> None:
    stored = TemplateClient(context.sessions["admin"]).get(context.saved["id"])
    assert stored["title"] == title
