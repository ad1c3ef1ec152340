"""Tests for topology/serializers.py."""

import json

from colormesh.topology.serializers import serialize_dot, serialize_json, serialize_mermaid


class TestSerializeJson:
    def test_round_trips_plan_dict(self, blue_green):
        assert json.loads(serialize_json(blue_green)) == blue_green.to_dict()


class TestSerializeMermaid:
    """Tests for Mermaid flowchart output."""

    def test_header(self, blue_green):
        assert serialize_mermaid(blue_green).startswith("graph LR")

    def test_nodes_show_hostname(self, blue_green):
        output = serialize_mermaid(blue_green)
        assert "virtual_node_blue_vn[blue-vn<br/>colorteller]" in output
        assert "virtual_node_green_vn[green-vn<br/>green-vn]" in output

    def test_virtual_service_is_rounded(self, blue_green):
        output = serialize_mermaid(blue_green)
        assert "virtual_service_colorteller_mesh_local([colorteller.mesh.local])" in output

    def test_weighted_edge(self, blue_green):
        output = serialize_mermaid(blue_green)
        assert "virtual_node_blue_vn -->|weight: 1| route_colorteller_route" in output
        assert "mesh_demomesh --> virtual_router_colorteller_vr" in output

    def test_classes(self, blue_green):
        output = serialize_mermaid(blue_green)
        assert "classDef virtual_node" in output
        assert "class mesh_demomesh mesh" in output


class TestSerializeDot:
    """Tests for Graphviz DOT output."""

    def test_digraph(self, blue_green):
        output = serialize_dot(blue_green)
        assert output.startswith("digraph demomesh {")
        assert output.rstrip().endswith("}")

    def test_node_shapes(self, blue_green):
        output = serialize_dot(blue_green)
        assert 'virtual_router_colorteller_vr [label="colorteller-vr"' in output
        assert "shape=diamond" in output
        assert "shape=folder" in output

    def test_inactive_target_dashed(self, blue_green):
        canary = blue_green.reweighted({"blue": 1, "green": 0})
        output = serialize_dot(canary)
        assert 'virtual_node_green_vn -> route_colorteller_route [label="weight: 0", style=dashed];' in output
        assert 'virtual_node_blue_vn -> route_colorteller_route [label="weight: 1"];' in output

    def test_plain_edge(self, blue_green):
        assert "    mesh_demomesh -> virtual_node_blue_vn;" in serialize_dot(blue_green)
