"""
Execution inspection endpoints.

Provides:
- POST /tree - Rebuild the execution forest of one agent-flow run
"""

import json

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from flowport.api.rest.models import ExecutionTreeRequest, ExecutionTreeResponse
from flowport.api.rest.dependencies import get_config_dependency
from flowport.application.services import aggregate_status, build_execution_tree
from flowport.config import FlowportConfig
from flowport.domain.models import dump_forest

router = APIRouter(prefix="/api/v1/executions", tags=["Executions"])


# ═══════════════════════════════════════════════════════════════════════════════
# Tree Reconstruction
# ═══════════════════════════════════════════════════════════════════════════════

@router.post("/tree", response_model=ExecutionTreeResponse)
async def execution_tree(
    request: ExecutionTreeRequest,
    config: FlowportConfig = Depends(get_config_dependency),
) -> Response:
    """
    Build the display tree from a flat execution log.

    Loop passes are grouped under synthesized iteration nodes and credential
    ids are stripped from node data. ``status`` is null when the run status
    cannot be determined.

    The body is written directly as JSON text: a long sequential run nests
    one level per step, deeper than model validation or the default encoder
    can walk.
    """
    forest = build_execution_tree(request.executed_data, credential_key=config.credential_sentinel_key)
    status = aggregate_status(forest)
    body = '{"tree": %s, "status": %s}' % (
        dump_forest(forest),
        json.dumps(status.value if status is not None else None),
    )
    return Response(content=body, media_type="application/json")
