"""A Streamlit web frontend for chatting with automation systems through the gateway."""

import streamlit as st
import requests

from app.models.workspace import Workspace

# --- Page and API Configuration ---
st.set_page_config(page_title="Automation Chat", page_icon="🤖", layout="wide")
API_BASE = "http://localhost:8000"


def get_api_session():
    """Gets the requests.Session object from streamlit's session state."""
    if "api_session" not in st.session_state:
        st.session_state.api_session = requests.Session()
    return st.session_state.api_session


def call_gateway(method: str, path: str, **kwargs):
    """Calls the gateway and stores the returned conversation view."""
    try:
        response = get_api_session().request(
            method, f"{API_BASE}{path}", timeout=120, **kwargs
        )
    except requests.exceptions.RequestException as e:
        st.session_state.gateway_error = f"Could not reach the gateway: {e}"
        return None

    if response.status_code == 200:
        st.session_state.view = response.json()
        return st.session_state.view
    if response.status_code != 404:
        # Shown on the next run, since most callers rerun right away
        st.session_state.gateway_error = (
            f"Error: {response.status_code} - {response.text}"
        )
    return None


# --- Main App ---
st.title("🤖 Automation Chat")
st.caption("Talk to an automation system; it prepares the action, you submit it.")

# --- API Health Check ---
try:
    health_response = get_api_session().get(f"{API_BASE}/health", timeout=3)
    if (
        health_response.status_code != 200
        or health_response.json().get("status") != "healthy"
    ):
        st.error("Gateway is not running or is unhealthy.", icon="🚨")
        st.stop()
except requests.exceptions.ConnectionError:
    st.error(
        "Could not connect to the gateway. Please ensure the backend server is running.",
        icon="🚨",
    )
    st.stop()

# --- Workspace Selection ---
with st.sidebar:
    st.header("System")
    slug = st.text_input("Slug", value="order-bot").strip()
    name = st.text_input("Display name", placeholder="derived from the slug")
    modal_url = st.text_input("Execution endpoint", placeholder="optional")

if not slug:
    st.info("Enter the slug of an automation system to start.")
    st.stop()

workspace = {"slug": slug, "name": name or None, "modal_url": modal_url or None}

if st.session_state.get("slug") != slug:
    st.session_state.slug = slug
    st.session_state.view = None
    call_gateway("GET", f"/chat/{slug}")

view = st.session_state.get("view")
system_name = (
    view["system_name"]
    if view
    else Workspace(slug=slug, name=name or None).display_name
)

if gateway_error := st.session_state.pop("gateway_error", None):
    st.error(gateway_error, icon="🚨")

# ==============================================================================
# === RESULT VIEW ==============================================================
# ==============================================================================
if view and view["state"] in ("success", "error"):
    outcome = view["outcome"] or {}
    if view["state"] == "success":
        st.success(outcome.get("message"), icon="✅")
    else:
        st.error(outcome.get("message"), icon="❌")

    retry_col, new_col = st.columns(2)
    if view["state"] == "error" and view["mode"] == "confirm":
        if retry_col.button("Try Again", use_container_width=True):
            call_gateway("POST", f"/chat/{slug}/retry")
            st.rerun()
    if new_col.button("New Chat", type="primary", use_container_width=True):
        call_gateway("POST", f"/chat/{slug}/new")
        st.rerun()
    st.stop()

# ==============================================================================
# === CHAT VIEW ================================================================
# ==============================================================================
chat_container = st.container(height=500)
with chat_container:
    if not view or not view["messages"]:
        st.caption(f"Start a conversation with {system_name}")
    for message in view["messages"] if view else []:
        role = "user" if message["role"] == "user" else "assistant"
        with st.chat_message(role):
            st.markdown(message["content"])

# --- Confirmation Panel ---
if view and view["state"] == "awaiting_confirmation":
    with st.container(border=True):
        st.subheader("Confirm Submission")
        st.code(view["pending_payload_pretty"], language="json")
        st.caption(f"Will be sent to `{view['target_endpoint']}`")
        confirm_col, cancel_col = st.columns(2)
        if confirm_col.button("Confirm", type="primary", use_container_width=True):
            with st.spinner(f"Submitting to {system_name}..."):
                call_gateway("POST", f"/chat/{slug}/confirm")
            st.rerun()
        if cancel_col.button("Cancel", use_container_width=True):
            call_gateway("POST", f"/chat/{slug}/cancel")
            st.rerun()

input_enabled = view is None or view["input_enabled"]
if prompt := st.chat_input("Type a message...", disabled=not input_enabled):
    with chat_container:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("🧠 Thinking..."):
                call_gateway(
                    "POST",
                    f"/chat/{slug}",
                    json={"message": prompt, "workspace": workspace},
                )

    # Force a rerun to anchor the input box at the bottom after a new message
    st.rerun()
