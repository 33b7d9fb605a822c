"""
Export/Import Service.

Snapshots a tenant's dataset into an ExportBundle and re-imports a bundle
into the requester's tenant inside a single unit of work.

Import pipeline (each step may depend on mappings from the previous ones):
1. Flows (AgentFlow, AgentFlowV2, AssistantFlow, ChatFlow): normalize the
   flow definition JSON, then remap colliding ids
2. Assistants, then Chats: remap colliding ids
3. ChatMessages: drop rows whose flow cannot be resolved, remap ids, clear
   execution references that cannot be resolved
4. Feedback: drop rows whose flow or message cannot be resolved, remap ids
5. CustomTemplate, DocumentStore, DocumentStoreFileChunk, Tool, Execution,
   Variable: remap colliding ids
6. Re-stamp tenant ownership, save every category, commit

Usage:
    service = ExportImportService(uow_factory=create_unit_of_work_factory(config))

    selection = service.convert_export_input({"chatflow": True, "chat_message": True})
    bundle = service.export_data(selection, Requester(id="u1", organization_id="o1"))

    service.import_data(Requester(id="u2", organization_id="o2"), bundle)
"""

from contextlib import nullcontext
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple, Union
import copy
import logging

from flowport.domain.interfaces.repositories import IEntityRepository
from flowport.domain.interfaces.unit_of_work import IUnitOfWork
from flowport.domain.models.entities import AssistantType, ChatFlowType, ChatType
from flowport.domain.models.exceptions import FlowportError, InternalError, UnauthorizedError
from flowport.domain.models.export_bundle import (
    ASSISTANT_CATEGORIES,
    EXPORT_FILE_DEFAULT_NAME,
    FLOW_CATEGORIES,
    ExportBundle,
    ExportSelection,
    Requester,
)
from flowport.application.services.id_remapper import IdRemapper, normalize_json_text
from flowport.application.services.organization_locks import OrganizationLockRegistry

logger = logging.getLogger(__name__)


# (selection flag, bundle attribute, unit-of-work repository, filters)
_EXPORT_PLAN: Tuple[Tuple[str, str, str, Dict[str, Any]], ...] = (
    ("agentflow", "agent_flows", "chatflows", {"type": ChatFlowType.MULTIAGENT.value}),
    ("agentflowv2", "agent_flows_v2", "chatflows", {"type": ChatFlowType.AGENTFLOW.value}),
    ("assistant_custom", "custom_assistants", "assistants", {"type": AssistantType.CUSTOM.value}),
    ("includes_assistant_flows", "assistant_flows", "chatflows", {"type": ChatFlowType.ASSISTANT.value}),
    ("assistant_openai", "openai_assistants", "assistants", {"type": AssistantType.OPENAI.value}),
    ("assistant_azure", "azure_assistants", "assistants", {"type": AssistantType.AZURE.value}),
    ("chatflow", "chatflows", "chatflows", {"type": ChatFlowType.CHATFLOW.value}),
    ("chat", "chats", "chats", {}),
    ("chat_message", "chat_messages", "chat_messages", {}),
    ("chat_feedback", "chat_feedback", "chat_feedback", {}),
    ("custom_template", "custom_templates", "custom_templates", {}),
    ("document_store", "document_stores", "document_stores", {}),
    ("includes_file_chunks", "document_store_file_chunks", "document_store_file_chunks", {}),
    ("execution", "executions", "executions", {}),
    ("tool", "tools", "tools", {}),
    ("variable", "variables", "variables", {}),
)

_REPOSITORY_BY_CATEGORY: Dict[str, str] = {attr: repo for _, attr, repo, _ in _EXPORT_PLAN}

_INDEPENDENT_CATEGORIES: Tuple[str, ...] = (
    "custom_templates",
    "document_stores",
    "document_store_file_chunks",
    "tools",
    "executions",
    "variables",
)

SAVE_ORDER: Tuple[str, ...] = (
    FLOW_CATEGORIES
    + ASSISTANT_CATEGORIES
    + ("chats", "chat_messages", "chat_feedback")
    + _INDEPENDENT_CATEGORIES
)


class ExportImportService:
    """
    Application service for tenant export and import.

    Each call opens its own unit of work from ``uow_factory``; the service
    holds no per-request state.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        lock_registry: Optional[OrganizationLockRegistry] = None,
        file_name: str = EXPORT_FILE_DEFAULT_NAME,
    ):
        """
        Args:
            uow_factory: Returns a fresh, unopened unit of work
            lock_registry: Serializes imports per organization; None disables locking
            file_name: Default file name attached to every export
        """
        self._uow_factory = uow_factory
        self._locks = lock_registry
        self._file_name = file_name

    # ═══════════════════════════════════════════════════════════════════════════
    # Export
    # ═══════════════════════════════════════════════════════════════════════════

    def convert_export_input(self, body: Any) -> ExportSelection:
        """
        Validate a raw export request body.

        Raises:
            InvalidExportSelectionError: body is not a mapping of booleans
        """
        return ExportSelection.from_dict(body)

    def export_data(self, selection: ExportSelection, requester: Requester) -> ExportBundle:
        """
        Collect the requester's rows for every selected category.

        Raises:
            UnauthorizedError: requester id or organization id missing
            InternalError: any failure while reading
        """
        self._require_identity(requester)
        try:
            with self._uow_factory() as uow:
                bundle = ExportBundle(file_default_name=self._file_name)
                for flag, attr, repo_name, filters in _EXPORT_PLAN:
                    if not getattr(selection, flag):
                        continue
                    repo: IEntityRepository = getattr(uow, repo_name)
                    setattr(bundle, attr, repo.find_owned(requester.id, requester.organization_id, **filters))
        except FlowportError:
            raise
        except Exception as e:
            logger.error(f"Export for organization {requester.organization_id} failed: {e}")
            raise InternalError.wrap("exportData", e) from e

        logger.info(f"Exported {_describe_counts(bundle)} for organization {requester.organization_id}")
        return bundle

    # ═══════════════════════════════════════════════════════════════════════════
    # Import
    # ═══════════════════════════════════════════════════════════════════════════

    def import_data(self, requester: Requester, bundle: Union[ExportBundle, Dict[str, Any]]) -> None:
        """
        Import a bundle into the requester's tenant, all or nothing.

        The caller's bundle is not modified. Messages and feedback whose
        references cannot be resolved are dropped; everything else is saved
        in one transaction.

        Raises:
            UnauthorizedError: requester id or organization id missing
            ValueError: ``bundle`` is a wire dict that is not a valid bundle
            InternalError: any failure while remapping or saving (rolled back)
        """
        self._require_identity(requester)

        if isinstance(bundle, ExportBundle):
            bundle = copy.deepcopy(bundle)
        else:
            bundle = ExportBundle.from_dict(bundle)

        guard = self._locks.hold(requester.organization_id) if self._locks is not None else nullcontext()
        with guard:
            try:
                self._import(requester, bundle)
            except FlowportError:
                raise
            except Exception as e:
                logger.error(f"Import into organization {requester.organization_id} rolled back: {e}")
                raise InternalError.wrap("importData", e) from e

    def _import(self, requester: Requester, bundle: ExportBundle) -> None:
        logger.info(f"Importing {_describe_counts(bundle)} into organization {requester.organization_id}")
        remapper = IdRemapper(bundle)

        with self._uow_factory() as uow:
            for attr in FLOW_CATEGORIES:
                for flow in bundle.rows(attr):
                    flow.flow_data = normalize_json_text(flow.flow_data)
                self._remap_collisions(uow, remapper, bundle, attr)

            for attr in ASSISTANT_CATEGORIES:
                self._remap_collisions(uow, remapper, bundle, attr)

            self._remap_collisions(uow, remapper, bundle, "chats")
            self._import_messages(uow, remapper, bundle, requester)
            self._import_feedback(uow, remapper, bundle, requester)

            for attr in _INDEPENDENT_CATEGORIES:
                self._remap_collisions(uow, remapper, bundle, attr)

            self._restamp(bundle, requester)

            for attr in SAVE_ORDER:
                rows = bundle.rows(attr)
                if rows:
                    _repository(uow, attr).save_all(rows)

            uow.commit()

        logger.info(f"Import into organization {requester.organization_id} committed")

    def _remap_collisions(self, uow: IUnitOfWork, remapper: IdRemapper, bundle: ExportBundle, attr: str) -> None:
        rows = bundle.rows(attr)
        if not rows:
            return
        existing = _repository(uow, attr).find_existing_ids(row.id for row in rows)
        remapper.remap_collisions(rows, existing)

    def _import_messages(
        self,
        uow: IUnitOfWork,
        remapper: IdRemapper,
        bundle: ExportBundle,
        requester: Requester,
    ) -> None:
        messages = bundle.chat_messages
        if not messages:
            return

        known_flows = _resolvable(
            uow.chatflows, (m.chatflow_id for m in messages), {f.id for f in bundle.flows()}, requester,
        )
        kept = [m for m in messages if m.chatflow_id in known_flows]
        if len(kept) < len(messages):
            logger.warning(f"Dropped {len(messages) - len(kept)} chat message(s) with unknown chatflow")
        bundle.chat_messages = kept

        self._remap_collisions(uow, remapper, bundle, "chat_messages")

        known_executions = _resolvable(
            uow.executions, (m.execution_id for m in kept), {e.id for e in bundle.executions}, requester,
        )
        cleared = 0
        for message in kept:
            if message.execution_id and message.execution_id not in known_executions:
                message.execution_id = None
                cleared += 1
        if cleared:
            logger.warning(f"Cleared {cleared} chat message execution reference(s) with unknown execution")

    def _import_feedback(
        self,
        uow: IUnitOfWork,
        remapper: IdRemapper,
        bundle: ExportBundle,
        requester: Requester,
    ) -> None:
        feedback = bundle.chat_feedback
        if not feedback:
            return

        known_flows = _resolvable(
            uow.chatflows, (f.chatflow_id for f in feedback), {f.id for f in bundle.flows()}, requester,
        )
        known_messages = _resolvable(
            uow.chat_messages, (f.message_id for f in feedback), {m.id for m in bundle.chat_messages}, requester,
        )
        kept = [
            f for f in feedback
            if f.chatflow_id in known_flows and f.message_id in known_messages
        ]
        if len(kept) < len(feedback):
            logger.warning(f"Dropped {len(feedback) - len(kept)} feedback row(s) with unknown chatflow or message")
        bundle.chat_feedback = kept

        self._remap_collisions(uow, remapper, bundle, "chat_feedback")

    @staticmethod
    def _restamp(bundle: ExportBundle, requester: Requester) -> None:
        for row in bundle.all_rows():
            row.user_id = requester.id
            row.organization_id = requester.organization_id
        for chat in bundle.chats:
            chat.owner_id = requester.id
        for message in bundle.chat_messages:
            message.chat_type = ChatType.INTERNAL.value

    @staticmethod
    def _require_identity(requester: Optional[Requester]) -> None:
        if requester is None or not requester.is_identified:
            raise UnauthorizedError()


def _repository(uow: IUnitOfWork, attr: str) -> IEntityRepository:
    return getattr(uow, _REPOSITORY_BY_CATEGORY[attr])


def _resolvable(
    repo: IEntityRepository,
    references: Iterable[Optional[str]],
    bundle_ids: Set[str],
    requester: Requester,
) -> Set[str]:
    """References found in the bundle or among the requester's own stored rows."""
    wanted = {ref for ref in references if ref}
    found = wanted & bundle_ids
    missing = wanted - found
    if missing:
        found |= repo.find_owned_ids(missing, requester.id, requester.organization_id)
    return found


def _describe_counts(bundle: ExportBundle) -> str:
    counts = {key: n for key, n in bundle.counts().items() if n}
    if not counts:
        return "empty bundle"
    return ", ".join(f"{n} {key}" for key, n in counts.items())
