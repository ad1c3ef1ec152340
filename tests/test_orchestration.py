"""Tests for orchestration package.

Tests for MeshAssembler, the execution engine, handlers, and result
collection, using the in-memory backend.
"""

import pytest
from colormesh.core.errors import (
    ConfigurationError,
    DanglingReferenceError,
    EmptyTopologyError,
    InvalidVariantError,
    ProvisioningFailure,
    ValidationError,
)
from colormesh.orchestration.assembler import MeshAssembler
from colormesh.orchestration.engine import ExecutionEngine
from colormesh.orchestration.handlers import RouteHandler, register_default_handlers
from colormesh.orchestration.registry import ResourceRegistry, SubmissionContext
from colormesh.orchestration.results import AssemblyResult, ResultCollector
from colormesh.config.settings import Settings
from colormesh.providers.base import LogSpec, PublicAddress, TaskSpec
from colormesh.providers.memory import InMemoryBackend, SimulatedFailure
from colormesh.providers.template import TemplateProvisioner
from colormesh.topology.models import ResourceKind

MESH_ORDER = [
    "mesh/demomesh",
    "virtual_node/blue-vn",
    "virtual_node/green-vn",
    "virtual_router/colorteller-vr",
    "route/colorteller-route",
    "virtual_service/colorteller.mesh.local",
]

INFRA_ORDER = [
    "network/demo-vpc",
    "security_group/external",
    "security_group/internal",
    "cluster/demo-cluster",
    "namespace/mesh.local",
    "service/gateway",
    "service/colorteller",
    "service/colorteller-green",
    "entry_point/gateway",
]


@pytest.fixture
def full_assembler(settings, backend):
    """Assembler that also provisions infrastructure on the backend."""
    return MeshAssembler(
        settings, network=backend, cluster=backend, compute=backend, entry_point=backend
    )


class TestMeshOnly:
    """Assembly of the mesh overlay alone."""

    def test_blue_green(self, settings, backend):
        result = MeshAssembler(settings).assemble(["blue", "green"], "mesh.local", backend)

        assert result.virtual_service_fqdn == "colorteller.mesh.local"
        assert result.public_address is None
        assert result.created == MESH_ORDER
        assert [c.resource_id for c in backend.calls] == MESH_ORDER

    def test_handles_returned(self, settings, backend):
        result = MeshAssembler(settings).assemble(["blue"], "mesh.local", backend)
        handle = result.handles["virtual_router/colorteller-vr"]
        assert handle.kind is ResourceKind.VIRTUAL_ROUTER
        assert handle.identifier == "local:virtual_router/colorteller-vr"

    def test_empty_topology_makes_no_calls(self, settings, backend):
        with pytest.raises(EmptyTopologyError):
            MeshAssembler(settings).assemble([], "mesh.local", backend)
        assert backend.calls == []

    def test_invalid_variant_makes_no_calls(self, full_assembler, backend):
        with pytest.raises(InvalidVariantError):
            full_assembler.assemble(["blue", "BAD"], "mesh.local", backend)
        assert backend.calls == []

    def test_failure_on_third_of_five(self, settings):
        """Resources before the failing one stay created; nothing after is attempted."""
        backend = InMemoryBackend(fail_on_call=3)

        with pytest.raises(ProvisioningFailure) as exc_info:
            MeshAssembler(settings).assemble(["blue"], "mesh.local", backend)

        failure = exc_info.value
        assert failure.resource_id == "virtual_router/colorteller-vr"
        assert failure.created == ["mesh/demomesh", "virtual_node/blue-vn"]
        assert isinstance(failure.cause, SimulatedFailure)
        assert len(backend.calls) == 3

    def test_failure_on_first(self, settings):
        backend = InMemoryBackend.failing_on(["mesh/demomesh"])
        with pytest.raises(ProvisioningFailure) as exc_info:
            MeshAssembler(settings).assemble(["blue", "green"], "mesh.local", backend)
        assert exc_info.value.created == []

    def test_template_backend(self, settings):
        template = TemplateProvisioner()
        result = MeshAssembler(settings).assemble(["blue", "green"], "mesh.local", template)
        assert result.created == MESH_ORDER
        assert len(template.resources) == 6

    def test_weights_reach_provisioner(self, settings):
        template = TemplateProvisioner()
        MeshAssembler(settings).assemble(
            ["blue", "green"], "mesh.local", template, weights={"blue": 3, "green": 1}
        )
        route = template.resources["RouteColortellerRoute"]["Properties"]["Spec"]["HttpRoute"]
        assert route["Action"]["WeightedTargets"] == [
            {"VirtualNode": "blue-vn", "Weight": 3},
            {"VirtualNode": "green-vn", "Weight": 1},
        ]

    def test_unknown_weight_target_makes_no_calls(self, settings, backend):
        with pytest.raises(DanglingReferenceError):
            MeshAssembler(settings).assemble(["blue"], "mesh.local", backend, weights={"red": 1})
        assert backend.calls == []

    def test_progress_callback(self, settings, backend):
        steps = []
        MeshAssembler(settings).assemble(
            ["blue"], "mesh.local", backend, on_step=lambda i, n, rid: steps.append((i, n, rid))
        )
        assert steps[0] == (1, 5, "mesh/demomesh")
        assert steps[-1] == (5, 5, "virtual_service/colorteller.mesh.local")

    def test_plan_without_submitting(self, settings):
        plan = MeshAssembler(settings).plan(["blue", "green"], "mesh.local")
        assert plan.order() == MESH_ORDER

    def test_plan_empty(self, settings):
        with pytest.raises(EmptyTopologyError):
            MeshAssembler(settings).plan([])


class TestWithInfrastructure:
    """Assembly including network, cluster, services and entry point."""

    def test_order(self, full_assembler, backend):
        result = full_assembler.assemble(["blue", "green"], "mesh.local", backend)
        assert result.created == INFRA_ORDER + MESH_ORDER

    def test_public_address(self, full_assembler, backend):
        result = full_assembler.assemble(["blue", "green"], "mesh.local", backend)
        assert result.public_address == PublicAddress("gateway.local.elb.example.com")
        assert result.to_dict()["public_url"] == "http://gateway.local.elb.example.com"

    def test_one_service_per_variant(self, full_assembler, backend):
        full_assembler.assemble(["blue", "green", "red"], "mesh.local", backend)
        deployed = [c.resource_id for c in backend.calls if c.method == "deploy_service"]
        assert deployed == [
            "service/gateway",
            "service/colorteller",
            "service/colorteller-green",
            "service/colorteller-red",
        ]

    def test_security_groups(self, full_assembler, backend):
        full_assembler.assemble(["blue"], "mesh.local", backend)
        external = backend.resources["security_group/external"]
        internal = backend.resources["security_group/internal"]
        assert [(r.port, r.source) for r in external.rules] == [(80, "any")]
        assert [r.port for r in internal.rules] == [8080, 9901, 15000]

    def test_failure_during_infrastructure(self, settings):
        backend = InMemoryBackend.failing_on(["cluster/demo-cluster"])
        assembler = MeshAssembler(settings, network=backend, cluster=backend, compute=backend)

        with pytest.raises(ProvisioningFailure) as exc_info:
            assembler.assemble(["blue"], "mesh.local", backend)

        assert exc_info.value.created == INFRA_ORDER[:3]
        assert not any(c.method == "create_mesh" for c in backend.calls)

    def test_failure_in_mesh_keeps_infrastructure(self, full_assembler):
        backend = full_assembler.compute
        backend.fail_on = {"route/colorteller-route"}
        with pytest.raises(ProvisioningFailure) as exc_info:
            full_assembler.assemble(["blue", "green"], "mesh.local", backend)
        assert exc_info.value.created == INFRA_ORDER + MESH_ORDER[:4]

    def test_without_entry_point(self, settings, backend):
        assembler = MeshAssembler(settings, network=backend, cluster=backend, compute=backend)
        result = assembler.assemble(["blue"], "mesh.local", backend)
        assert result.public_address is None
        assert "entry_point/gateway" not in result.created

    def test_task_sizing_and_logs(self, full_assembler, backend):
        full_assembler.assemble(["blue", "green"], "mesh.local", backend)
        gateway = backend.resources["service/gateway"]
        green = backend.resources["service/colorteller-green"]

        assert gateway.task == TaskSpec(cpu=512, memory_mib=1024, desired_count=1)
        assert gateway.logs == LogSpec(group="demo", stream_prefix="gateway", retention_days=1)
        assert green.logs.stream_prefix == "colorteller-green"
        assert backend.resources["service/colorteller"].logs.stream_prefix == "colorteller-blue"

    def test_task_and_log_settings(self, backend):
        settings = Settings(
            _env_file=None,
            task_cpu=256,
            task_memory_mib=512,
            desired_count=3,
            log_group="colors",
            log_retention_days=7,
        )
        assembler = MeshAssembler(settings, network=backend, cluster=backend, compute=backend)
        assembler.assemble(["blue"], "mesh.local", backend)

        service = backend.resources["service/colorteller"]
        assert service.task == TaskSpec(cpu=256, memory_mib=512, desired_count=3)
        assert service.logs == LogSpec(
            group="colors", stream_prefix="colorteller-blue", retention_days=7
        )

    def test_dns_ttl_on_non_default_services(self, full_assembler, backend):
        full_assembler.assemble(["blue", "green"], "mesh.local", backend)
        assert backend.resources["service/colorteller"].dns_ttl is None
        assert backend.resources["service/colorteller-green"].dns_ttl == 10

    def test_family_hints_reach_compute(self, full_assembler, backend):
        full_assembler.assemble(
            ["blue", "green"], "mesh.local", backend, family_hints={"green": "green-td"}
        )
        assert backend.resources["service/colorteller"].family == "colorteller-taskdef"
        assert backend.resources["service/colorteller-green"].family == "green-td"

    def test_progress_is_contiguous(self, full_assembler, backend):
        steps = []
        full_assembler.assemble(
            ["blue", "green"], "mesh.local", backend, on_step=lambda *args: steps.append(args)
        )

        total = len(INFRA_ORDER) + len(MESH_ORDER)
        assert [s[0] for s in steps] == list(range(1, total + 1))
        assert {s[1] for s in steps} == {total}
        assert [s[2] for s in steps] == INFRA_ORDER + MESH_ORDER

    def test_infrastructure_steps(self, settings, full_assembler):
        plan = full_assembler.plan(["blue", "green"], "mesh.local")
        assert full_assembler.infrastructure_steps(plan) == len(INFRA_ORDER)
        assert MeshAssembler(settings).infrastructure_steps(plan) == 0


class TestProviderConfiguration:
    def test_partial_infrastructure_rejected(self, settings, backend):
        with pytest.raises(ConfigurationError):
            MeshAssembler(settings, network=backend)

    def test_entry_point_needs_compute(self, settings, backend):
        with pytest.raises(ConfigurationError):
            MeshAssembler(settings, entry_point=backend)


class TestExecutionEngine:
    """Tests for engine checks."""

    def test_missing_handler(self, blue_green, backend):
        registry = ResourceRegistry()
        registry.register(RouteHandler())
        ctx = SubmissionContext(plan=blue_green, provisioner=backend)

        with pytest.raises(ValidationError) as exc_info:
            ExecutionEngine(registry).execute(ctx, ResultCollector())
        assert "mesh" in exc_info.value.message
        assert backend.calls == []

    def test_context_receives_handles(self, blue_green, backend):
        ctx = SubmissionContext(plan=blue_green, provisioner=backend)
        ExecutionEngine(register_default_handlers(ResourceRegistry())).execute(ctx, ResultCollector())
        assert list(ctx.handles) == MESH_ORDER
        assert ctx.handle_for("mesh/demomesh").identifier == "local:mesh/demomesh"

    def test_step_offset(self, blue_green, backend):
        steps = []
        ctx = SubmissionContext(plan=blue_green, provisioner=backend)
        ExecutionEngine(register_default_handlers(ResourceRegistry())).execute(
            ctx, ResultCollector(), on_step=lambda *args: steps.append(args), offset=4, total=10
        )
        assert [s[0] for s in steps] == [5, 6, 7, 8, 9, 10]
        assert {s[1] for s in steps} == {10}


class TestRegistry:
    def test_default_handlers(self):
        registry = register_default_handlers(ResourceRegistry())
        assert set(registry.list()) == set(ResourceKind)
        assert registry.get(ResourceKind.ROUTE).display_name == "route"


class TestResults:
    def test_collector_failure_snapshot(self):
        collector = ResultCollector()
        collector.record("mesh/demomesh", object())
        failure = collector.failure("virtual_node/blue-vn", RuntimeError("boom"))
        collector.record("virtual_node/blue-vn", object())

        assert failure.created == ["mesh/demomesh"]
        assert failure.details["resource_id"] == "virtual_node/blue-vn"

    def test_assembly_result_to_dict(self):
        result = AssemblyResult(
            virtual_service_fqdn="colorteller.mesh.local",
            created=["mesh/demomesh"],
            duration_seconds=0.12345,
        )
        assert result.to_dict() == {
            "virtual_service": "colorteller.mesh.local",
            "public_url": None,
            "created": ["mesh/demomesh"],
            "total_resources": 1,
            "duration_seconds": 0.123,
        }
