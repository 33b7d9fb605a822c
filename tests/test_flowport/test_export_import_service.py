"""
Unit tests for ExportImportService over the in-memory unit of work.

Covers:
- Export selection validation and per-category filtering
- Id collision remapping and reference rewriting
- Dropping rows with unresolvable references
- All-or-nothing import
- Tenant re-stamping and re-export counts
"""

import json
import threading

import pytest

from flowport.application.services import ExportImportService, OrganizationLockRegistry
from flowport.domain.models import (
    Assistant,
    AssistantType,
    ChatFlowType,
    ChatMessageFeedback,
    ChatType,
    CustomTemplate,
    DocumentStore,
    DocumentStoreFileChunk,
    Execution,
    ExportBundle,
    ExportSelection,
    InternalError,
    InvalidExportSelectionError,
    Requester,
    Tool,
    UnauthorizedError,
    Variable,
)
from flowport.infrastructure.database import InMemoryEntityRepository, InMemoryUnitOfWork

from .conftest import make_chat, make_flow, make_message, seed


def _owned(store, repo_name, requester):
    with InMemoryUnitOfWork(store) as uow:
        return getattr(uow, repo_name).find_owned(requester.id, requester.organization_id)


def _fail_saving(monkeypatch, repo_name, message, before_raise=None):
    """Make ``save_all`` on one table raise, after an optional side effect."""
    original = InMemoryEntityRepository.save_all

    def save_all(self, entities):
        if self.name != repo_name:
            return original(self, entities)
        if before_raise is not None:
            before_raise()
        raise RuntimeError(message)

    monkeypatch.setattr(InMemoryEntityRepository, "save_all", save_all)


# ═══════════════════════════════════════════════════════════════════════════════
# Export
# ═══════════════════════════════════════════════════════════════════════════════


class TestConvertExportInput:
    """Strict validation of the export selection body."""

    def test_accepts_booleans(self, service):
        selection = service.convert_export_input({"chatflow": True, "tool": False})
        assert selection.chatflow is True
        assert selection.tool is False
        assert selection.variable is False

    def test_rejects_non_boolean_value(self, service):
        with pytest.raises(InvalidExportSelectionError) as exc_info:
            service.convert_export_input({"chatflow": "yes"})

        assert exc_info.value.http_status == 400
        assert "Invalid chatflow property in ExportInput object" in exc_info.value.message

    @pytest.mark.parametrize("body", [None, [], "chatflow"])
    def test_rejects_non_object_body(self, service, body):
        with pytest.raises(InvalidExportSelectionError) as exc_info:
            service.convert_export_input(body)
        assert "Invalid ExportInput object in request body" in exc_info.value.message

    def test_camel_case_assistant_keys(self, service):
        selection = service.convert_export_input({"assistantCustom": True, "assistantOpenAI": True})
        assert selection.assistant_custom and selection.assistant_openai
        assert not selection.assistant_azure


class TestExportData:
    """Export collects only the requester's rows for selected categories."""

    def test_requires_identity(self, service, store):
        with pytest.raises(UnauthorizedError):
            service.export_data(ExportSelection(chatflow=True), Requester(id=None, organization_id="org-a"))
        with pytest.raises(UnauthorizedError):
            service.export_data(ExportSelection(chatflow=True), Requester(id="u", organization_id=""))

    def test_only_requester_rows(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("fa", alice), make_flow("fb", bob))

        bundle = service.export_data(ExportSelection(chatflow=True), alice)

        assert [f.id for f in bundle.chatflows] == ["fa"]

    def test_same_user_other_organization_excluded(self, service, store, alice):
        elsewhere = Requester(id=alice.id, organization_id="org-other")
        seed(store, "chatflows", make_flow("fa", alice), make_flow("fx", elsewhere))

        bundle = service.export_data(ExportSelection(chatflow=True), alice)

        assert [f.id for f in bundle.chatflows] == ["fa"]

    def test_unselected_categories_are_empty(self, service, store, alice):
        seed(store, "chatflows", make_flow("fa", alice))
        seed(store, "tools", Tool(id="t1", name="search", user_id=alice.id, organization_id=alice.organization_id))

        bundle = service.export_data(ExportSelection(tool=True), alice)

        assert bundle.chatflows == []
        assert [t.id for t in bundle.tools] == ["t1"]
        assert bundle.to_dict()["FileDefaultName"] == "ExportData.json"

    def test_flow_types_split_into_categories(self, service, store, alice):
        seed(
            store, "chatflows",
            make_flow("c", alice),
            make_flow("m", alice, type=ChatFlowType.MULTIAGENT.value),
            make_flow("v2", alice, type=ChatFlowType.AGENTFLOW.value),
            make_flow("as", alice, type=ChatFlowType.ASSISTANT.value),
        )

        bundle = service.export_data(ExportSelection.everything(), alice)

        assert [f.id for f in bundle.chatflows] == ["c"]
        assert [f.id for f in bundle.agent_flows] == ["m"]
        assert [f.id for f in bundle.agent_flows_v2] == ["v2"]
        assert [f.id for f in bundle.assistant_flows] == ["as"]

    def test_custom_assistants_bring_assistant_flows(self, service, store, alice):
        seed(store, "chatflows", make_flow("as", alice, type=ChatFlowType.ASSISTANT.value))
        seed(
            store, "assistants",
            Assistant(id="a1", user_id=alice.id, organization_id=alice.organization_id),
            Assistant(id="a2", type=AssistantType.OPENAI.value, user_id=alice.id, organization_id=alice.organization_id),
        )

        bundle = service.export_data(ExportSelection(assistant_custom=True), alice)

        assert [a.id for a in bundle.custom_assistants] == ["a1"]
        assert [f.id for f in bundle.assistant_flows] == ["as"]
        assert bundle.openai_assistants == []

    def test_document_store_brings_file_chunks(self, service, store, alice):
        owner = dict(user_id=alice.id, organization_id=alice.organization_id)
        seed(store, "document_stores", DocumentStore(id="s1", name="docs", **owner))
        seed(store, "document_store_file_chunks", DocumentStoreFileChunk(id="k1", store_id="s1", **owner))

        bundle = service.export_data(ExportSelection(document_store=True), alice)

        assert [s.id for s in bundle.document_stores] == ["s1"]
        assert [c.id for c in bundle.document_store_file_chunks] == ["k1"]

    def test_read_failure_wrapped(self, service, store, alice, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(InMemoryEntityRepository, "find_owned", boom)

        with pytest.raises(InternalError) as exc_info:
            service.export_data(ExportSelection(chatflow=True), alice)

        assert exc_info.value.http_status == 500
        assert exc_info.value.message == "Error: exportImportService.exportData - disk on fire"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


# ═══════════════════════════════════════════════════════════════════════════════
# Import
# ═══════════════════════════════════════════════════════════════════════════════


class TestImportRemapping:
    """Colliding ids get fresh values and references follow them."""

    def test_colliding_flow_gets_new_id_and_messages_follow(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("flow-x", bob))
        bundle = ExportBundle(
            chatflows=[make_flow("flow-x", alice)],
            chat_messages=[make_message("m1", "flow-x", alice)],
        )

        service.import_data(alice, bundle)

        flows = _owned(store, "chatflows", alice)
        assert len(flows) == 1
        new_id = flows[0].id
        assert new_id != "flow-x"
        messages = _owned(store, "chat_messages", alice)
        assert [m.chatflow_id for m in messages] == [new_id]
        assert [f.id for f in _owned(store, "chatflows", bob)] == ["flow-x"]

    def test_non_colliding_ids_are_kept(self, service, store, alice):
        service.import_data(alice, ExportBundle(chatflows=[make_flow("fresh", alice)]))
        assert [f.id for f in _owned(store, "chatflows", alice)] == ["fresh"]

    def test_caller_bundle_not_modified(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("flow-x", bob))
        bundle = ExportBundle(chatflows=[make_flow("flow-x", alice)])

        service.import_data(alice, bundle)

        assert bundle.chatflows[0].id == "flow-x"

    def test_chat_and_feedback_follow_remaps(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("f1", bob))
        seed(store, "chats", make_chat("c1", "f1", bob))
        seed(store, "chat_messages", make_message("m1", "f1", bob, chat_id="c1"))
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            chats=[make_chat("c1", "f1", alice)],
            chat_messages=[make_message("m1", "f1", alice, chat_id="c1")],
            chat_feedback=[ChatMessageFeedback(id="fb1", chatflow_id="f1", chat_id="c1", message_id="m1", rating="THUMBS_UP")],
        )

        service.import_data(alice, bundle)

        flow = _owned(store, "chatflows", alice)[0]
        chat = _owned(store, "chats", alice)[0]
        message = _owned(store, "chat_messages", alice)[0]
        feedback = _owned(store, "chat_feedback", alice)[0]
        assert chat.id != "c1" and chat.chatflow_id == flow.id
        assert message.id != "m1"
        assert message.chat_id == chat.id and message.chatflow_id == flow.id
        assert feedback.id == "fb1"
        assert (feedback.chatflow_id, feedback.chat_id, feedback.message_id) == (flow.id, chat.id, message.id)

    def test_document_store_chunks_follow_store_remap(self, service, store, alice, bob):
        owner = dict(user_id=bob.id, organization_id=bob.organization_id)
        seed(store, "document_stores", DocumentStore(id="s1", **owner))
        seed(store, "document_store_file_chunks", DocumentStoreFileChunk(id="k1", store_id="s1", **owner))
        bundle = ExportBundle(
            document_stores=[DocumentStore(id="s1", name="docs")],
            document_store_file_chunks=[
                DocumentStoreFileChunk(id="k1", store_id="s1", chunk_no=0),
                DocumentStoreFileChunk(id="k2", store_id="s1", chunk_no=1),
            ],
        )

        service.import_data(alice, bundle)

        doc_store = _owned(store, "document_stores", alice)[0]
        chunks = sorted(_owned(store, "document_store_file_chunks", alice), key=lambda c: c.chunk_no)
        assert doc_store.id != "s1"
        assert [c.store_id for c in chunks] == [doc_store.id, doc_store.id]
        assert chunks[0].id != "k1"
        assert chunks[1].id == "k2"

    def test_ids_inside_json_blobs_rewritten_exactly(self, service, store, alice, bob):
        seed(store, "assistants", Assistant(id="asst-1", user_id=bob.id, organization_id=bob.organization_id))
        flow_data = json.dumps({
            "nodes": [{"data": {"inputs": {"selectedAssistant": "asst-1", "note": "asst-1 is great"}}}],
        }, indent=2)
        bundle = ExportBundle(
            custom_assistants=[Assistant(id="asst-1")],
            assistant_flows=[make_flow("af", alice, type=ChatFlowType.ASSISTANT.value, flow_data=flow_data)],
        )

        service.import_data(alice, bundle)

        assistant = _owned(store, "assistants", alice)[0]
        flow = _owned(store, "chatflows", alice)[0]
        inputs = json.loads(flow.flow_data)["nodes"][0]["data"]["inputs"]
        assert assistant.id != "asst-1"
        assert inputs["selectedAssistant"] == assistant.id
        assert inputs["note"] == "asst-1 is great"

    def test_flow_data_normalized(self, service, store, alice):
        bundle = ExportBundle(chatflows=[make_flow("f", alice, flow_data='{ "nodes" : [ ],\n "edges": [] }')])

        service.import_data(alice, bundle)

        assert _owned(store, "chatflows", alice)[0].flow_data == '{"nodes":[],"edges":[]}'

    def test_invalid_flow_data_fails_import(self, service, store, alice):
        bundle = ExportBundle(
            chatflows=[make_flow("f", alice, flow_data="{not json")],
            tools=[Tool(id="t1")],
        )

        with pytest.raises(InternalError) as exc_info:
            service.import_data(alice, bundle)

        assert exc_info.value.message.startswith("Error: exportImportService.importData - ")
        assert _owned(store, "tools", alice) == []

    def test_accepts_wire_dict(self, service, store, alice, bob):
        source = ExportBundle(
            chatflows=[make_flow("f1", bob)],
            custom_templates=[CustomTemplate(id="ct", name="tpl", usecases=["RAG"])],
        )

        service.import_data(alice, source.to_dict())

        template = _owned(store, "custom_templates", alice)[0]
        assert template.usecases == ["RAG"]
        assert [f.id for f in _owned(store, "chatflows", alice)] == ["f1"]


class TestImportReferentialDrops:
    """Rows whose references cannot be resolved are dropped or cleared."""

    def test_message_with_unknown_flow_dropped(self, service, store, alice):
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            chat_messages=[
                make_message("ok", "f1", alice),
                make_message("orphan", "missing-flow", alice),
            ],
        )

        service.import_data(alice, bundle)

        assert [m.id for m in _owned(store, "chat_messages", alice)] == ["ok"]
        assert store.commits == 1

    def test_message_may_reference_requesters_stored_flow(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("mine", alice), make_flow("theirs", bob))
        bundle = ExportBundle(chat_messages=[
            make_message("m1", "mine", alice),
            make_message("m2", "theirs", alice),
        ])

        service.import_data(alice, bundle)

        assert [m.id for m in _owned(store, "chat_messages", alice)] == ["m1"]

    def test_unknown_execution_reference_cleared(self, service, store, alice):
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            executions=[Execution(id="e1", agentflow_id="f1")],
            chat_messages=[
                make_message("m1", "f1", alice, execution_id="e1"),
                make_message("m2", "f1", alice, execution_id="gone"),
            ],
        )

        service.import_data(alice, bundle)

        by_id = {m.id: m for m in _owned(store, "chat_messages", alice)}
        assert by_id["m1"].execution_id == "e1"
        assert by_id["m2"].execution_id is None

    def test_feedback_with_unknown_message_dropped(self, service, store, alice):
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            chat_messages=[
                make_message("m1", "f1", alice),
                make_message("m-orphan", "missing", alice),
            ],
            chat_feedback=[
                ChatMessageFeedback(id="fb1", chatflow_id="f1", message_id="m1"),
                ChatMessageFeedback(id="fb2", chatflow_id="f1", message_id="nope"),
                ChatMessageFeedback(id="fb3", chatflow_id="f1", message_id="m-orphan"),
                ChatMessageFeedback(id="fb4", chatflow_id="missing", message_id="m1"),
            ],
        )

        service.import_data(alice, bundle)

        assert [f.id for f in _owned(store, "chat_feedback", alice)] == ["fb1"]


class TestImportAtomicity:
    """A failure anywhere leaves the store untouched."""

    def test_failure_saving_last_category_rolls_back_everything(self, service, store, alice, monkeypatch):
        _fail_saving(monkeypatch, "variables", "variables table locked")
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            chat_messages=[make_message("m1", "f1", alice)],
            tools=[Tool(id="t1")],
            variables=[Variable(id="v1", name="API_URL")],
        )

        with pytest.raises(InternalError) as exc_info:
            service.import_data(alice, bundle)

        assert "variables table locked" in exc_info.value.message
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert store.commits == 0
        assert store.rollbacks == 1
        for repo_name in ("chatflows", "chat_messages", "tools", "variables"):
            assert _owned(store, repo_name, alice) == []

    def test_requires_identity(self, service, store):
        with pytest.raises(UnauthorizedError) as exc_info:
            service.import_data(Requester(id="u", organization_id=None), ExportBundle(tools=[Tool(id="t")]))

        assert exc_info.value.http_status == 401
        assert store.commits == 0

    def test_missing_identity_checked_before_bundle(self, service):
        with pytest.raises(UnauthorizedError):
            service.import_data(Requester(id=None, organization_id=None), {"Tool": "not a list"})

    def test_malformed_wire_bundle_is_value_error(self, service, store, alice):
        with pytest.raises(ValueError):
            service.import_data(alice, {"Tool": "not a list"})

        assert store.commits == 0

    def test_concurrent_export_does_not_see_pending_import(self, service, store, alice, monkeypatch):
        seen_during_import = []

        def export_meanwhile():
            exported = service.export_data(ExportSelection(chatflow=True, tool=True), alice)
            seen_during_import.append(exported.counts())

        _fail_saving(monkeypatch, "variables", "variables table locked", before_raise=export_meanwhile)
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice)],
            tools=[Tool(id="t1")],
            variables=[Variable(id="v1")],
        )

        with pytest.raises(InternalError):
            service.import_data(alice, bundle)

        assert seen_during_import[0]["ChatFlow"] == 0
        assert seen_during_import[0]["Tool"] == 0
        assert _owned(store, "chatflows", alice) == []
        assert _owned(store, "tools", alice) == []

    def test_interleaved_commit_survives_failed_import(self, service, store, alice, bob, monkeypatch):
        def other_tenant_imports():
            with InMemoryUnitOfWork(store) as uow:
                uow.tools.save_all([Tool(id="tb", user_id=bob.id, organization_id=bob.organization_id)])
                uow.commit()

        _fail_saving(monkeypatch, "variables", "variables table locked", before_raise=other_tenant_imports)
        bundle = ExportBundle(tools=[Tool(id="ta")], variables=[Variable(id="v1")])

        with pytest.raises(InternalError):
            service.import_data(alice, bundle)

        assert _owned(store, "tools", alice) == []
        assert [t.id for t in _owned(store, "tools", bob)] == ["tb"]


class TestImportTenancy:
    """Imported rows belong to the importer."""

    def test_rows_restamped_to_requester(self, service, store, alice, bob):
        chat = make_chat("c1", "f1", bob)
        message = make_message("m1", "f1", bob, chat_id="c1", chat_type=ChatType.EXTERNAL.value)
        bundle = ExportBundle(
            chatflows=[make_flow("f1", bob)],
            chats=[chat],
            chat_messages=[message],
            variables=[Variable(id="v1", user_id=bob.id, organization_id=bob.organization_id)],
        )

        service.import_data(alice, bundle)

        assert _owned(store, "chatflows", bob) == []
        stored_chat = _owned(store, "chats", alice)[0]
        stored_message = _owned(store, "chat_messages", alice)[0]
        assert stored_chat.owner_id == alice.id
        assert stored_message.chat_type == ChatType.INTERNAL.value
        assert [v.id for v in _owned(store, "variables", alice)] == ["v1"]

    def test_reexport_counts_match_import(self, service, store, alice):
        bundle = ExportBundle(
            chatflows=[make_flow("f1", alice), make_flow("f2", alice)],
            chats=[make_chat("c1", "f1", alice)],
            chat_messages=[
                make_message("m1", "f1", alice, chat_id="c1"),
                make_message("m2", "missing", alice),
            ],
            tools=[Tool(id="t1")],
            variables=[Variable(id="v1")],
        )

        service.import_data(alice, bundle)
        exported = service.export_data(ExportSelection.everything(), alice)

        counts = {key: n for key, n in exported.counts().items() if n}
        assert counts == {"ChatFlow": 2, "Chat": 1, "ChatMessage": 1, "Tool": 1, "Variable": 1}

    def test_round_trip_between_tenants(self, service, store, alice, bob):
        seed(store, "chatflows", make_flow("f1", bob))
        seed(store, "chat_messages", make_message("m1", "f1", bob))

        exported = service.export_data(ExportSelection(chatflow=True, chat_message=True), bob)
        service.import_data(alice, exported.to_dict())

        flows = _owned(store, "chatflows", alice)
        messages = _owned(store, "chat_messages", alice)
        assert len(flows) == 1 and flows[0].id != "f1"
        assert messages[0].chatflow_id == flows[0].id


class TestImportLocking:
    """Imports into one organization are serialized."""

    def test_import_holds_organization_lock(self, store, alice):
        registry = OrganizationLockRegistry()
        observed = []

        class RecordingUnitOfWork:
            def __init__(self, inner):
                self._inner = inner

            def __enter__(self):
                observed.append(registry.is_locked(alice.organization_id))
                return self._inner.__enter__()

            def __exit__(self, *exc):
                return self._inner.__exit__(*exc)

        service = ExportImportService(
            uow_factory=lambda: RecordingUnitOfWork(InMemoryUnitOfWork(store)),
            lock_registry=registry,
        )
        service.import_data(alice, ExportBundle(tools=[Tool(id="t1")]))

        assert observed == [True]
        assert not registry.is_locked(alice.organization_id)

    def test_import_waits_for_concurrent_import(self, store, alice):
        registry = OrganizationLockRegistry()
        service = ExportImportService(uow_factory=lambda: InMemoryUnitOfWork(store), lock_registry=registry)
        done = threading.Event()

        with registry.hold(alice.organization_id):
            worker = threading.Thread(
                target=lambda: (service.import_data(alice, ExportBundle(tools=[Tool(id="t1")])), done.set()),
            )
            worker.start()
            assert not done.wait(timeout=0.2)

        worker.join(timeout=5)
        assert done.is_set()
        assert len(registry) == 0

    def test_lock_registry_per_organization(self):
        registry = OrganizationLockRegistry()

        with registry.hold("o1"):
            assert registry.is_locked("o1")
            assert not registry.is_locked("o2")
            with registry.hold("o2"):
                assert len(registry) == 2

        assert not registry.is_locked("o1")

    def test_idle_locks_are_released(self):
        registry = OrganizationLockRegistry()

        for n in range(50):
            with registry.hold(f"org-{n}"):
                pass

        assert len(registry) == 0

    def test_lock_released_when_import_fails(self, store, alice):
        registry = OrganizationLockRegistry()
        failing = ExportImportService(uow_factory=lambda: InMemoryUnitOfWork(store), lock_registry=registry)

        with pytest.raises(InternalError):
            failing.import_data(alice, ExportBundle(chatflows=[make_flow("f", alice, flow_data="{not json")]))

        assert len(registry) == 0

    def test_locking_disabled(self, store, alice):
        service = ExportImportService(uow_factory=lambda: InMemoryUnitOfWork(store), lock_registry=None)
        service.import_data(alice, ExportBundle(tools=[Tool(id="t1")]))
        assert [t.id for t in _owned(store, "tools", alice)] == ["t1"]
