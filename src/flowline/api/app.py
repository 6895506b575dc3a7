"""FastAPI REST API for workflow automation."""

from fastapi import FastAPI, HTTPException, Query

from flowline.api.models import (
    ActionResponse,
    ErrorResponse,
    ExecuteRequest,
    ExecuteResponse,
    GraphSaveRequest,
    HealthResponse,
    InstanceListResponse,
    InstanceResponse,
    PublishRequest,
    WorkflowCreateRequest,
    WorkflowListResponse,
    WorkflowResponse,
    WorkflowSummaryResponse,
    WorkflowUpdateRequest,
)
from flowline.models.results import ActionResult
from flowline.models.state import WorkflowInstance
from flowline.services.graph_codec import parse_flow_path
from flowline.services.workflow_engine import WorkflowEngine
from flowline.services.workflow_service import WorkflowService


def _raise_for_result(result: ActionResult) -> None:
    if result.success:
        return
    status_code = 404 if result.error == "Workflow not found" else 400
    raise HTTPException(status_code=status_code, detail=result.error)


def _instance_response(instance: WorkflowInstance) -> InstanceResponse:
    return InstanceResponse(
        id=instance.id,
        workflow_id=instance.workflow_id,
        status=instance.status.value,
        trigger_type=instance.trigger_type,
        trigger_data=instance.trigger_data,
        logs=instance.logs,
        error=instance.error,
        started_at=instance.started_at,
        completed_at=instance.completed_at,
        resume_at=instance.resume_at,
    )


class FlowlineAPI:
    """REST API over workflow management and execution."""

    def __init__(self, service: WorkflowService, engine: WorkflowEngine):
        """Initialize API with dependencies."""
        if service is None:
            raise ValueError("service is required")
        if engine is None:
            raise ValueError("engine is required")

        self._service = service
        self._engine = engine

    def create_app(self) -> FastAPI:
        """Create FastAPI application."""
        app = FastAPI(
            title="Flowline API",
            description="REST API for CRM workflow automation",
            version="1.0.0",
        )

        @app.post(
            "/workflows",
            response_model=ActionResponse,
            responses={400: {"model": ErrorResponse}},
        )
        def create_workflow(request: WorkflowCreateRequest) -> ActionResponse:
            """Create a workflow with a default trigger."""
            result = self._service.create_workflow(
                request.sub_account_id, request.name, request.description
            )
            _raise_for_result(result)
            return ActionResponse(success=True, workflow_id=result.workflow.id)

        @app.get("/subaccounts/{sub_account_id}/workflows", response_model=WorkflowListResponse)
        def list_workflows(sub_account_id: str) -> WorkflowListResponse:
            """List the workflows of a sub-account."""
            summaries = self._service.list_workflows(sub_account_id)
            return WorkflowListResponse(
                sub_account_id=sub_account_id,
                workflows=[
                    WorkflowSummaryResponse(
                        id=s.record.id,
                        name=s.record.name,
                        description=s.record.description,
                        published=s.record.published,
                        node_count=s.node_count,
                        instance_count=s.instance_count,
                        updated_at=s.record.updated_at,
                    )
                    for s in summaries
                ],
            )

        @app.get(
            "/workflows/{workflow_id}",
            response_model=WorkflowResponse,
            responses={404: {"model": ErrorResponse}},
        )
        def get_workflow(workflow_id: str) -> WorkflowResponse:
            """Get a workflow with its parsed graph."""
            loaded = self._service.get_workflow(workflow_id)
            if loaded is None:
                raise HTTPException(status_code=404, detail="Workflow not found")

            record = loaded.record
            return WorkflowResponse(
                id=record.id,
                name=record.name,
                description=record.description,
                sub_account_id=record.sub_account_id,
                published=record.published,
                nodes=[
                    n.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for n in loaded.nodes
                ],
                edges=[
                    e.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for e in loaded.edges
                ],
                flow_path=parse_flow_path(record.flow_path),
                created_at=record.created_at,
                updated_at=record.updated_at,
                parse_errors=loaded.errors,
            )

        @app.patch(
            "/workflows/{workflow_id}",
            response_model=ActionResponse,
            responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        )
        def update_workflow(
            workflow_id: str, request: WorkflowUpdateRequest
        ) -> ActionResponse:
            result = self._service.update_workflow(
                workflow_id, name=request.name, description=request.description
            )
            _raise_for_result(result)
            return ActionResponse(success=True, workflow_id=workflow_id)

        @app.delete(
            "/workflows/{workflow_id}",
            response_model=ActionResponse,
            responses={404: {"model": ErrorResponse}},
        )
        def delete_workflow(workflow_id: str) -> ActionResponse:
            """Delete a workflow and its run history."""
            result = self._service.delete_workflow(workflow_id)
            _raise_for_result(result)
            return ActionResponse(success=True, workflow_id=workflow_id)

        @app.put(
            "/workflows/{workflow_id}/graph",
            response_model=ActionResponse,
            responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        )
        def save_graph(workflow_id: str, request: GraphSaveRequest) -> ActionResponse:
            """Save nodes and edges and recompile the flow path."""
            result = self._service.save_workflow_nodes(
                workflow_id, request.nodes, request.edges
            )
            _raise_for_result(result)
            return ActionResponse(
                success=True, message="Workflow saved", workflow_id=workflow_id
            )

        @app.post(
            "/workflows/{workflow_id}/publish",
            response_model=ActionResponse,
            responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        )
        def publish_workflow(workflow_id: str, request: PublishRequest) -> ActionResponse:
            result = self._service.publish_workflow(workflow_id, request.publish)
            _raise_for_result(result)
            return ActionResponse(
                success=True, message=result.message, workflow_id=workflow_id
            )

        @app.post(
            "/workflows/{workflow_id}/execute",
            response_model=ExecuteResponse,
            responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        )
        def execute_workflow(workflow_id: str, request: ExecuteRequest) -> ExecuteResponse:
            """Trigger a run. Returns once the run finishes or suspends."""
            result = self._engine.execute_workflow(
                workflow_id, request.trigger_type, request.trigger_data
            )
            if not result.success:
                status_code = 404 if result.error == "Workflow not found" else 400
                raise HTTPException(status_code=status_code, detail=result.error)

            instance = self._service.get_instance(result.instance_id)
            status = instance.status.value if instance else "unknown"
            return ExecuteResponse(instance_id=result.instance_id, status=status)

        @app.get(
            "/workflows/{workflow_id}/instances",
            response_model=InstanceListResponse,
            responses={404: {"model": ErrorResponse}},
        )
        def list_instances(
            workflow_id: str, limit: int = Query(default=20, ge=1, le=200)
        ) -> InstanceListResponse:
            """Run history, most recent first."""
            if self._service.get_workflow(workflow_id) is None:
                raise HTTPException(status_code=404, detail="Workflow not found")

            instances = self._service.list_instances(workflow_id, limit)
            return InstanceListResponse(
                workflow_id=workflow_id,
                instances=[_instance_response(i) for i in instances],
            )

        @app.get(
            "/instances/{instance_id}",
            response_model=InstanceResponse,
            responses={404: {"model": ErrorResponse}},
        )
        def get_instance(instance_id: str) -> InstanceResponse:
            instance = self._service.get_instance(instance_id)
            if instance is None:
                raise HTTPException(status_code=404, detail="Instance not found")
            return _instance_response(instance)

        @app.get("/health", response_model=HealthResponse)
        def health_check() -> HealthResponse:
            """Health check endpoint."""
            return HealthResponse(status="ok")

        return app
