# app.py
#
# Streamlit-based runner capacity planner
# Run with: streamlit run app.py

import asyncio

import streamlit as st

from runner_sizer import planner
from runner_sizer.capacity import summarize
from runner_sizer.codec import decode, decode_or_default, encode
from runner_sizer.config import config
from runner_sizer.diagram import build_allocation_graph
from runner_sizer.errors import ExportError
from runner_sizer.ip_math import VPC_SIZE_OPTIONS, format_ips, total_capacity, valid_subnet_sizes
from runner_sizer.logger import configure_logging
from runner_sizer.models import (
    MAX_AZ_COUNT,
    MAX_ENVIRONMENTS,
    MAX_TOTAL_USERS,
    MIN_AZ_COUNT,
    MIN_ENVIRONMENTS,
    MIN_TOTAL_USERS,
    PlannerState,
)
from runner_sizer.regions import AVAILABILITY_ZONES, AWS_REGIONS
from runner_sizer.reports import RENDERERS, export_report
from runner_sizer.share import STATE_PARAM, build_share_url, share_link

configure_logging(config.LOG_LEVEL)

st.set_page_config(
    page_title=config.PAGE_TITLE,
    layout="wide",
)

# ------------------------------
# State loading
# ------------------------------

if "planner" not in st.session_state:
    token = st.query_params.get(STATE_PARAM)
    if token:
        loaded, error = decode_or_default(token)
        if error is not None:
            st.toast(
                "Invalid configuration URL: the shared configuration could not be "
                "loaded. Starting with default values."
            )
        st.session_state.planner = loaded
    else:
        st.session_state.planner = PlannerState()

state: PlannerState = st.session_state.planner

# Widget keys carry the revision so that widgets are rebuilt from the state
# after any mutation (e.g. user redistribution on add/remove runner).
rev = state.revision


def widget_key(name: str, item_id: str = "") -> str:
    return f"{name}_{item_id}_{rev}"


def from_widget(update, name: str, *args, item_id: str = ""):
    """Callback: pass the widget's current value to a planner update."""
    value = st.session_state[widget_key(name, item_id)]
    update(state, *args, value)


@st.cache_data(max_entries=16)
def cached_report(fmt: str, token: str):
    """Render a report once per configuration token rather than on every rerun."""
    return export_report(fmt, decode(token))


def from_subnet_widget(field: str, subnet_id: str):
    """Callback: merge one edited subnet field into the state."""
    value = st.session_state[widget_key(f"subnet_{field}", subnet_id)]
    planner.update_subnet(state, subnet_id, **{field: value})


# ------------------------------
# Page header
# ------------------------------

st.title(config.PAGE_TITLE)

st.markdown(
    """
Plan your [runner](https://www.gitpod.io/docs/flex/introduction/runners) infrastructure
across AWS regions. Every runner draws environment IPs from the VPC subnets assigned to it;
AWS reserves **5 addresses** in every subnet.
"""
)

# ---- Sidebar inputs ----
st.sidebar.header("Environment calculation")

st.sidebar.number_input(
    "Expected users",
    min_value=MIN_TOTAL_USERS,
    max_value=MAX_TOTAL_USERS,
    value=state.total_users,
    step=1,
    key=widget_key("total_users"),
    on_change=from_widget,
    args=(planner.set_total_users, "total_users"),
)
st.sidebar.number_input(
    "Environments per user",
    min_value=MIN_ENVIRONMENTS,
    max_value=MAX_ENVIRONMENTS,
    value=state.environments_per_user,
    step=1,
    key=widget_key("environments"),
    on_change=from_widget,
    args=(planner.set_environments_per_user, "environments"),
)

st.sidebar.header("Network layout")

st.sidebar.slider(
    "Availability zones",
    min_value=MIN_AZ_COUNT,
    max_value=MAX_AZ_COUNT,
    value=state.az_count,
    key=widget_key("az_count"),
    on_change=from_widget,
    args=(planner.set_az_count, "az_count"),
)

vpc_sizes = [option.size for option in VPC_SIZE_OPTIONS]
vpc_labels = {option.size: option.label for option in VPC_SIZE_OPTIONS}
st.sidebar.selectbox(
    "VPC primary CIDR block",
    options=vpc_sizes,
    index=vpc_sizes.index(state.subnet_size),
    format_func=vpc_labels.get,
    key=widget_key("subnet_size"),
    on_change=from_widget,
    args=(planner.set_subnet_size, "subnet_size"),
)
st.sidebar.caption(
    f"One /{state.subnet_size + 1} subnet per AZ holds "
    f"{format_ips(total_capacity(state.az_count, state.subnet_size + 1))} usable IPs."
)

st.sidebar.header("AWS regions")

for continent, regions in AWS_REGIONS.items():
    with st.sidebar.expander(continent, expanded=continent == "North America"):
        for code, label in regions:
            st.checkbox(
                label,
                value=code in state.selected_regions,
                key=widget_key("region", code),
                on_change=planner.toggle_region,
                args=(state, code),
            )

# ------------------------------
# Subnets
# ------------------------------

if state.selected_regions:
    st.header("Subnets")

    subnet_sizes = list(valid_subnet_sizes(state.subnet_size))
    size_labels = {option.size: option.label for option in subnet_sizes}

    for subnet in state.subnets:
        cols = st.columns([3, 2, 2, 3, 2, 1])
        with cols[0]:
            st.text_input(
                "Name",
                value=subnet.name,
                key=widget_key("subnet_name", subnet.id),
                on_change=from_subnet_widget,
                args=("name", subnet.id),
            )
        with cols[1]:
            region_options = list(dict.fromkeys([*state.selected_regions, subnet.region]))
            st.selectbox(
                "Region",
                options=region_options,
                index=region_options.index(subnet.region),
                key=widget_key("subnet_region", subnet.id),
                on_change=from_subnet_widget,
                args=("region", subnet.id),
            )
        with cols[2]:
            az_options = list(dict.fromkeys([*AVAILABILITY_ZONES, subnet.az]))
            st.selectbox(
                "AZ",
                options=az_options,
                index=az_options.index(subnet.az),
                format_func=lambda az, region=subnet.region: f"{region}-{az}",
                key=widget_key("subnet_az", subnet.id),
                on_change=from_subnet_widget,
                args=("az", subnet.id),
            )
        with cols[3]:
            cidr_options = list(dict.fromkeys([*size_labels, subnet.cidr_size]))
            st.selectbox(
                "Subnet size",
                options=cidr_options,
                index=cidr_options.index(subnet.cidr_size),
                format_func=lambda size: size_labels.get(size, f"/{size}"),
                key=widget_key("subnet_cidr_size", subnet.id),
                on_change=from_subnet_widget,
                args=("cidr_size", subnet.id),
            )
        with cols[4]:
            st.metric("Available IPs", format_ips(subnet.available_ips))
        with cols[5]:
            st.button(
                "Remove",
                key=widget_key("subnet_remove", subnet.id),
                on_click=planner.remove_subnet,
                args=(state, subnet.id),
            )

    st.button("Add subnet", on_click=planner.add_subnet, args=(state,))

# ------------------------------
# Runners
# ------------------------------

summary = summarize(state)

if state.subnets:
    st.header("Runners")

    for usage in summary.runner_usage:
        runner = usage.runner
        cols = st.columns([3, 2, 2, 4, 2, 1])
        with cols[0]:
            st.text_input(
                "Runner",
                value=runner.name,
                key=widget_key("runner_name", runner.id),
                on_change=from_widget,
                args=(planner.update_runner_name, "runner_name", runner.id),
                kwargs={"item_id": runner.id},
            )
        with cols[1]:
            region_options = list(dict.fromkeys([*state.selected_regions, runner.region]))
            st.selectbox(
                "Region",
                options=region_options,
                index=region_options.index(runner.region),
                key=widget_key("runner_region", runner.id),
                on_change=from_widget,
                args=(planner.update_runner_region, "runner_region", runner.id),
                kwargs={"item_id": runner.id},
            )
        with cols[2]:
            st.number_input(
                "Users",
                min_value=0,
                value=runner.users,
                step=1,
                key=widget_key("runner_users", runner.id),
                on_change=from_widget,
                args=(planner.update_runner_users, "runner_users", runner.id),
                kwargs={"item_id": runner.id},
            )
        with cols[3]:
            in_region = {s.id: s.name for s in state.subnets if s.region == runner.region}
            st.multiselect(
                "Subnets",
                options=list(in_region),
                default=[sid for sid in dict.fromkeys(runner.subnet_ids) if sid in in_region],
                format_func=in_region.get,
                placeholder=f"No subnets available for {runner.region}"
                if not in_region
                else "Choose subnets",
                key=widget_key("runner_subnets", runner.id),
                on_change=from_widget,
                args=(planner.update_runner_subnets, "runner_subnets", runner.id),
                kwargs={"item_id": runner.id},
            )
        with cols[4]:
            st.metric(
                "Capacity",
                format_ips(runner.capacity),
                delta=f"{format_ips(usage.planned_utilization)} planned",
                delta_color="off",
            )
        with cols[5]:
            st.button(
                "Remove",
                key=widget_key("runner_remove", runner.id),
                on_click=planner.remove_runner,
                args=(state, runner.id),
                disabled=len(state.runners) <= 1,
            )

    st.button(
        "Add runner",
        on_click=planner.add_runner,
        args=(state,),
        disabled=not state.selected_regions,
    )

    # ---- Warnings ----
    if summary.is_over_allocated:
        st.error(
            f"Runners are assigned {summary.assigned_users} users, more than the "
            f"{state.total_users} expected users."
        )
    if summary.is_under_allocated:
        st.warning(
            f"Runners are assigned {summary.assigned_users} users, fewer than the "
            f"{state.total_users} expected users."
        )
    if summary.shared_subnets:
        st.warning(
            "Subnets shared by more than one runner compete for the same IPs: "
            + ", ".join(summary.shared_subnets)
        )
    if summary.over_capacity_runners:
        st.error(
            "Runners planned beyond their subnet capacity: "
            + ", ".join(
                f"{usage.runner.name} ({format_ips(usage.planned_utilization)} > "
                f"{format_ips(usage.runner.capacity)})"
                for usage in summary.runner_usage
                if usage.runner in summary.over_capacity_runners
            )
        )

# ------------------------------
# Output: capacity summary
# ------------------------------

st.header("Capacity summary")

col1, col2, col3 = st.columns(3)

with col1:
    st.metric("Planned utilization (IPs)", format_ips(summary.total_planned_utilization))
    st.caption("Expected users × environments per user.")

with col2:
    st.metric("Total capacity (IPs)", format_ips(summary.total_capacity))
    st.caption("Each assigned subnet counted once, even when shared.")

with col3:
    st.metric("Utilization", f"{summary.utilization_percentage}%")
    if summary.total_capacity == 0:
        st.info("Assign subnets to runners to see utilization.")
    elif summary.is_over_capacity:
        st.error("Planned utilization exceeds the assigned subnet capacity.")
    else:
        st.success("Planned utilization fits in the assigned subnets.")

st.progress(min(summary.utilization_percentage, 100) / 100)

if state.runners and state.subnets:
    st.subheader("Runner allocation diagram")
    st.graphviz_chart(build_allocation_graph(state))

# ------------------------------
# Share and export
# ------------------------------

st.header("Share and export")

share_col, *export_cols = st.columns(1 + len(RENDERERS))

with share_col:
    if st.button("Share configuration"):
        link = asyncio.run(share_link(build_share_url(config.PUBLIC_URL, state)))
        if link.shortened:
            st.toast("Shortened link ready to copy.")
        else:
            st.toast("Configuration link ready to copy.")
        st.code(link.url, language=None)

token = encode(state)

for col, fmt in zip(export_cols, RENDERERS):
    with col:
        try:
            report = cached_report(fmt, token)
        except ExportError as e:
            st.error(str(e))
        else:
            st.download_button(
                f"Export {fmt.upper()}",
                data=report.data,
                file_name=report.filename,
                mime=report.mime,
            )

# The URL always carries the current configuration.
st.query_params[STATE_PARAM] = token

st.info(
    "Note: capacity figures assume AWS's five reserved addresses per subnet and count each "
    "assigned subnet once. They are a **planning aid**, not a substitute for checking the "
    "actual VPC layout."
)
