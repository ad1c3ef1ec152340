"""Tests for topology/models.py.

Tests for resource ids, weighted targets, route and virtual service
construction rules.
"""

import pytest
from colormesh.core.errors import InvalidWeightError, ValidationError
from colormesh.topology.models import (
    DependencyEdge,
    MeshNode,
    MeshSpec,
    ResourceKind,
    RouterSpec,
    RouteSpec,
    Variant,
    VirtualServiceSpec,
    WeightedTarget,
    make_resource_id,
)


@pytest.fixture
def blue_node():
    return MeshNode(variant=Variant("blue", 0), name="blue-vn", port=8080, hostname="colorteller")


@pytest.fixture
def green_node():
    return MeshNode(variant=Variant("green", 1), name="green-vn", port=8080, hostname="green-vn")


@pytest.fixture
def router():
    return RouterSpec(name="colorteller-vr", port=8080)


class TestResourceIds:
    """Tests for resource id construction."""

    def test_make_resource_id(self):
        assert make_resource_id(ResourceKind.VIRTUAL_NODE, "blue-vn") == "virtual_node/blue-vn"

    def test_kind_prefixes(self, blue_node, router):
        assert MeshSpec("demomesh").resource_id == "mesh/demomesh"
        assert blue_node.resource_id == "virtual_node/blue-vn"
        assert router.resource_id == "virtual_router/colorteller-vr"

    def test_kind_is_not_a_field(self):
        spec = MeshSpec("demomesh")
        assert spec.kind is ResourceKind.MESH
        assert spec == MeshSpec(name="demomesh")


class TestVariant:
    def test_first_is_default(self):
        assert Variant("blue", 0).is_default
        assert not Variant("green", 1).is_default


class TestWeightedTarget:
    """Tests for weight validation."""

    def test_zero_allowed(self, blue_node):
        assert WeightedTarget(blue_node, 0).weight == 0

    def test_negative_rejected(self, blue_node):
        with pytest.raises(InvalidWeightError):
            WeightedTarget(blue_node, -1)

    @pytest.mark.parametrize("weight", [1.5, "1", True])
    def test_non_integer_rejected(self, blue_node, weight):
        with pytest.raises(InvalidWeightError):
            WeightedTarget(blue_node, weight)

    def test_to_dict(self, blue_node):
        assert WeightedTarget(blue_node, 3).to_dict() == {"virtual_node": "blue-vn", "weight": 3}


class TestRouteSpec:
    """Tests for route construction."""

    def test_requires_targets(self, router):
        with pytest.raises(InvalidWeightError):
            RouteSpec(name="r", router=router, targets=())

    def test_weights_must_sum_above_zero(self, router, blue_node, green_node):
        targets = (WeightedTarget(blue_node, 0), WeightedTarget(green_node, 0))
        with pytest.raises(InvalidWeightError):
            RouteSpec(name="r", router=router, targets=targets)

    def test_total_weight(self, router, blue_node, green_node):
        targets = (WeightedTarget(blue_node, 1), WeightedTarget(green_node, 3))
        assert RouteSpec(name="r", router=router, targets=targets).total_weight == 4

    def test_prefix_must_be_absolute(self, router, blue_node):
        with pytest.raises(ValidationError):
            RouteSpec(name="r", router=router, targets=(WeightedTarget(blue_node, 1),), prefix="api")

    def test_to_dict(self, router, blue_node):
        route = RouteSpec(name="colorteller-route", router=router, targets=(WeightedTarget(blue_node, 1),))
        assert route.to_dict() == {
            "kind": "route",
            "name": "colorteller-route",
            "virtual_router": "colorteller-vr",
            "prefix": "/",
            "weighted_targets": [{"virtual_node": "blue-vn", "weight": 1}],
        }


class TestVirtualServiceSpec:
    """Tests for the single-provider rule."""

    def test_router_provider(self, router):
        vs = VirtualServiceSpec(name="colorteller.mesh.local", router=router)
        assert vs.provider is router
        assert vs.to_dict()["provider"] == {"virtual_router": "colorteller-vr"}

    def test_node_provider(self, blue_node):
        vs = VirtualServiceSpec(name="colorteller.mesh.local", node=blue_node)
        assert vs.provider is blue_node
        assert vs.to_dict()["provider"] == {"virtual_node": "blue-vn"}

    def test_no_provider_rejected(self):
        with pytest.raises(ValidationError):
            VirtualServiceSpec(name="colorteller.mesh.local")

    def test_two_providers_rejected(self, router, blue_node):
        with pytest.raises(ValidationError):
            VirtualServiceSpec(name="colorteller.mesh.local", router=router, node=blue_node)


def test_dependency_edge_to_dict():
    edge = DependencyEdge("mesh/demomesh", "virtual_node/blue-vn")
    assert edge.to_dict() == {"source": "mesh/demomesh", "target": "virtual_node/blue-vn"}
