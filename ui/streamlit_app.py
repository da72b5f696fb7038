# ui/streamlit_app.py
import os
import time
from typing import Any, Dict, Optional

import requests
import streamlit as st

st.set_page_config(page_title="Karl Chat: RAG demo", layout="wide")
st.title("Karl Chat: before and after RAG")


@st.cache_resource
def resolve_api_base(default: Optional[str] = None) -> str:
    """
    Determine the active backend base URL in priority order:
    1. Streamlit query param `api`
    2. Environment variable `KARL_API_BASE`
    3. Provided default or http://localhost:5000
    """
    params = st.query_params
    api_param = params.get("api")
    if api_param:
        if isinstance(api_param, list):
            return api_param[-1].rstrip("/")
        return str(api_param).rstrip("/")

    env_base = os.environ.get("KARL_API_BASE")
    if env_base:
        return env_base.rstrip("/")

    return (default or "http://localhost:5000").rstrip("/")


API_BASE = resolve_api_base()
API_ROOT = API_BASE[:-4] if API_BASE.endswith("/api") else API_BASE


def api_url(path: str) -> str:
    path = path if path.startswith("/") else f"/{path}"
    return f"{API_ROOT}/api{path}"


def fetch_health() -> Dict[str, Any]:
    try:
        resp = requests.get(api_url("/health"), timeout=10)
        resp.raise_for_status()
        info = resp.json()
        info["online"] = True
        return info
    except Exception as exc:
        return {"online": False, "error": f"Cannot connect to backend server ({exc})"}


def format_latency(start_time: float) -> str:
    return f"{(time.time() - start_time) * 1000:.0f} ms"


def post_chat(path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    resp = requests.post(api_url(path), json=payload, timeout=300)
    data = resp.json()
    if resp.status_code >= 400:
        hint = ". Initialize the RAG system first." if data.get("needsInitialization") else ""
        raise RuntimeError(f"{data.get('error', resp.status_code)}{hint}")
    return data


def render_response(title: str, data: Optional[Dict[str, Any]], error: Optional[str] = None) -> None:
    with st.container(border=True):
        st.markdown(f"#### {title}")
        if error:
            st.error(error)
            return
        if not data:
            st.caption("No response yet.")
            return

        thinking = data.get("reasoning")
        if thinking:
            words = len(thinking.split())
            with st.expander(f"🧠 Thinking process ({words} words)", expanded=False):
                st.markdown(thinking)
        st.markdown(data.get("answer") or "(no answer)")
        with st.expander("Raw response", expanded=False):
            st.json(data)


with st.sidebar:
    st.header("System")
    st.caption(f"Backend: `{API_BASE}`")
    if st.button("Refresh status", use_container_width=True) or "health" not in st.session_state:
        st.session_state["health"] = fetch_health()
    health = st.session_state["health"]

    if not health.get("online"):
        st.markdown("**Backend:** ⚠️ Offline")
        st.error(health.get("error"))
    else:
        st.markdown("**Backend:** ✅ Online")
        if health.get("isInitializing"):
            rag_label = "⏳ Initializing"
        elif health.get("ragInitialized"):
            rag_label = "✅ Ready"
        else:
            rag_label = "❌ Not initialized"
        st.markdown(f"**RAG system:** {rag_label}")
        cfg = health.get("config", {})
        st.caption(f"Model `{cfg.get('model')}` on {cfg.get('ollamaHost')}:{cfg.get('ollamaPort')}")
        st.caption(f"Neo4j `{cfg.get('neo4jUri')}`")
        if health.get("initializationError"):
            st.error(health["initializationError"])

    init_disabled = bool(health.get("ragInitialized") or health.get("isInitializing"))
    if st.button("Initialize RAG", type="primary", disabled=init_disabled, use_container_width=True):
        with st.spinner("Loading pages into Neo4j…"):
            try:
                resp = requests.post(api_url("/initialize"), timeout=900)
                data = resp.json()
                if data.get("success"):
                    st.toast(data.get("message", "RAG system initialized"))
                else:
                    st.error(data.get("error"))
            except Exception as exc:
                st.error(f"Failed to initialize RAG system: {exc}")
        st.session_state["health"] = fetch_health()

    thinking_enabled = st.toggle("Show thinking process", value=True)


tabs = st.tabs(["Before RAG", "With RAG"])

# -------- Before RAG --------
with tabs[0]:
    st.subheader("Ask the model directly")
    topic = st.text_input("Topic", placeholder="e.g. Ollama")
    if st.button("Ask", key="before_go") and topic.strip():
        try:
            with st.spinner("Thinking…"):
                start = time.time()
                data = post_chat("/chat/before-rag", {"topic": topic.strip(), "enableThinking": thinking_enabled})
            st.caption(f"Latency: {format_latency(start)}")
            render_response("Before RAG", data)
        except Exception as exc:
            render_response("Before RAG", None, error=str(exc))

# -------- With RAG --------
with tabs[1]:
    st.subheader("Ask with retrieved context")
    question = st.text_input("Question", placeholder="e.g. What is Ollama's OpenAI compatibility?")
    if st.button("Ask", key="rag_go") and question.strip():
        try:
            with st.spinner("Retrieving and thinking…"):
                start = time.time()
                data = post_chat("/chat/with-rag", {"question": question.strip(), "enableThinking": thinking_enabled})
            st.caption(f"Latency: {format_latency(start)} · {data.get('retrieved') or 0} chunks retrieved")
            render_response("With RAG", data)
        except Exception as exc:
            render_response("With RAG", None, error=str(exc))
