"""Unit tests for the document model and mutation observers."""

import pytest

from sidebar_monitor.dom import Document, MutationType, ObserverOptions
from sidebar_monitor.protocols import DocumentTree


def _collector():
    batches = []

    def callback(records, _observer):
        batches.append(records)

    return batches, callback


@pytest.fixture
def document():
    return Document('<div id="root"><p id="a" class="x">one</p><p id="b">two</p></div><div id="other"></div>')


def _by_id(document, element_id):
    return document.select_one(document.root(), f"#{element_id}")


def test_records_batch_until_flush(document):
    batches, callback = _collector()
    root = _by_id(document, "root")
    document.observe(root, ObserverOptions(child_list=True, subtree=True), callback)

    document.insert_child(root, "<p>three</p>")
    document.remove(_by_id(document, "b"))
    assert batches == []

    assert document.flush() == 1
    assert len(batches) == 1
    assert [r.type for r in batches[0]] == [MutationType.CHILD_LIST, MutationType.CHILD_LIST]
    assert batches[0][0].added_nodes[0].get_text() == "three"
    assert batches[0][1].removed_nodes[0]["id"] == "b"


def test_subtree_flag_limits_scope(document):
    batches, callback = _collector()
    root = _by_id(document, "root")
    document.observe(root, ObserverOptions(child_list=True), callback)

    document.insert_child(_by_id(document, "a"), "<b>deep</b>")
    document.flush()
    assert batches == []

    document.insert_child(root, "<p>direct</p>")
    document.flush()
    assert len(batches) == 1


def test_changes_outside_target_ignored(document):
    batches, callback = _collector()
    document.observe(_by_id(document, "root"), ObserverOptions(child_list=True, subtree=True), callback)

    document.insert_child(_by_id(document, "other"), "<span>x</span>")

    assert document.flush() == 0
    assert batches == []


def test_attribute_filter(document):
    batches, callback = _collector()
    options = ObserverOptions(attributes=True, subtree=True, attribute_filter=frozenset({"class"}))
    document.observe(_by_id(document, "root"), options, callback)
    paragraph = _by_id(document, "a")

    document.set_attribute(paragraph, "data-x", "1")
    document.set_attribute(paragraph, "class", "y")
    document.flush()

    assert len(batches) == 1
    (record,) = batches[0]
    assert record.attribute_name == "class"
    assert record.old_value == "x"
    assert paragraph["class"] == "y"


def test_character_data_targets_new_text_node(document):
    batches, callback = _collector()
    document.observe(_by_id(document, "root"), ObserverOptions(character_data=True, subtree=True), callback)
    paragraph = _by_id(document, "a")
    (text_node,) = document.text_nodes(paragraph)

    new_node = document.set_text(text_node, "uno")
    document.flush()

    (record,) = batches[0]
    assert record.type is MutationType.CHARACTER_DATA
    assert record.target is new_node
    assert record.old_value == "one"
    assert document.parent(new_node) is paragraph
    assert paragraph.get_text() == "uno"


def test_set_text_on_element_is_child_list(document):
    batches, callback = _collector()
    document.observe(_by_id(document, "root"), ObserverOptions(child_list=True, subtree=True), callback)
    paragraph = _by_id(document, "a")

    document.set_text(paragraph, "replaced")
    document.flush()

    (record,) = batches[0]
    assert record.type is MutationType.CHILD_LIST
    assert record.target is paragraph
    assert paragraph.get_text() == "replaced"


def test_disconnect_drops_pending(document):
    batches, callback = _collector()
    root = _by_id(document, "root")
    observer = document.observe(root, ObserverOptions(child_list=True, subtree=True), callback)

    document.insert_child(root, "<p>x</p>")
    observer.disconnect()

    assert document.flush() == 0
    assert batches == []


def test_observe_requires_a_change_type(document):
    with pytest.raises(ValueError):
        document.observe(_by_id(document, "root"), ObserverOptions(subtree=True), lambda records, obs: None)


def test_replace_child(document):
    batches, callback = _collector()
    root = _by_id(document, "root")
    document.observe(root, ObserverOptions(child_list=True), callback)

    new = document.replace_child(_by_id(document, "b"), '<p id="c">three</p>')
    document.flush()

    (record,) = batches[0]
    assert record.added_nodes == [new]
    assert record.removed_nodes[0]["id"] == "b"
    assert [child["id"] for child in document.children(root)] == ["a", "c"]


def test_closest_and_parent(document):
    paragraph = _by_id(document, "a")

    assert document.closest(paragraph, "#root") is _by_id(document, "root")
    assert document.closest(paragraph, "p") is paragraph
    assert document.closest(paragraph, "#other") is None
    assert document.parent(_by_id(document, "root")) is None


def test_class_is_plain_string():
    document = Document('<span class="a b">x</span>')
    span = document.select_one(document.root(), '[class="a b"]')

    assert span is not None
    assert document.get_attribute(span, "class") == "a b"


def test_substituted_text():
    document = Document('<p>Hi <i><img alt="X"></i> there</p>')
    paragraph = document.select_one(document.root(), "p")

    text = document.substituted_text(paragraph, lambda el: "[img]" if el.name == "i" else None)

    assert text == "Hi [img] there"


def test_events():
    document = Document("<body></body>")
    calls = []

    def on_focus():
        calls.append("focus")

    def on_visibility():
        calls.append(("visibility", document.hidden))

    document.add_event_listener("focus", on_focus)
    document.add_event_listener("visibilitychange", on_visibility)

    document.focus()
    document.set_hidden(True)
    document.set_hidden(True)
    document.set_hidden(False)
    document.remove_event_listener("focus", on_focus)
    document.focus()

    assert calls == ["focus", ("visibility", True), ("visibility", False)]


def test_failing_listener_is_logged(caplog):
    document = Document("<body></body>")
    calls = []

    def broken():
        raise RuntimeError("boom")

    document.add_event_listener("focus", broken)
    document.add_event_listener("focus", lambda: calls.append(1))

    document.focus()

    assert calls == [1]
    assert "Listener for focus failed" in caplog.text


def test_document_satisfies_tree_protocol():
    assert isinstance(Document("<p></p>"), DocumentTree)


def test_remove_attribute_records_old_value(document):
    batches, callback = _collector()
    options = ObserverOptions(attributes=True, subtree=True, attribute_filter=frozenset({"class"}))
    document.observe(_by_id(document, "root"), options, callback)
    paragraph = _by_id(document, "a")

    document.remove_attribute(paragraph, "class")
    document.remove_attribute(paragraph, "class")
    document.flush()

    (record,) = batches[0]
    assert record.type is MutationType.ATTRIBUTES
    assert record.attribute_name == "class"
    assert record.old_value == "x"
    assert document.get_attribute(paragraph, "class") is None
