"""Graphviz view of which runners draw from which subnets."""

from graphviz import Digraph

from runner_sizer.capacity import (
    over_capacity_runners,
    runner_planned_utilization,
    shared_subnet_ids,
)
from runner_sizer.ip_math import format_ips
from runner_sizer.models import PlannerState

WARNING_COLOR = "#DC2626"


def build_allocation_graph(state: PlannerState) -> Digraph:
    """
    Build a left-to-right diagram, one cluster per selected region:

      Runners (name, users, capacity)  ->  Subnets (name, AZ, prefix, IPs)

    Subnets used by more than one runner and runners planned beyond their
    capacity are drawn in red.
    """
    dot = Digraph(comment="Runner allocation")
    dot.attr(rankdir="LR", splines="polyline")
    dot.attr("node", shape="box")

    shared = shared_subnet_ids(state)
    overloaded = {runner.id for runner in over_capacity_runners(state)}

    for region in state.selected_regions:
        with dot.subgraph(name=f"cluster_{region}") as region_graph:
            region_graph.attr(label=region)

            for runner in state.runners:
                if runner.region != region:
                    continue
                attrs = {"color": WARNING_COLOR} if runner.id in overloaded else {}
                region_graph.node(
                    f"runner_{runner.id}",
                    f"{runner.name}\n(planned = {runner_planned_utilization(state, runner)}, "
                    f"capacity = {format_ips(runner.capacity)})",
                    shape="component",
                    **attrs,
                )

            for subnet in state.subnets:
                if subnet.region != region:
                    continue
                attrs = {"color": WARNING_COLOR} if subnet.id in shared else {}
                region_graph.node(
                    f"subnet_{subnet.id}",
                    f"{subnet.name}\n({subnet.az_label}, /{subnet.cidr_size}, "
                    f"{format_ips(subnet.available_ips)} IPs)",
                    **attrs,
                )

    known = {subnet.id for subnet in state.subnets}
    for runner in state.runners:
        for subnet_id in dict.fromkeys(runner.subnet_ids):
            if subnet_id in known:
                dot.edge(f"runner_{runner.id}", f"subnet_{subnet_id}")

    return dot
