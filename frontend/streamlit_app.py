"""Streamlit verdict dashboard for the Raw Material Inspection API."""

from __future__ import annotations

import io
import os
from typing import Any, Sequence

import httpx
import pandas as pd
import streamlit as st

from inspection_engine import Heat
from ingestion.csv_loader import HeatSheetError, build_heats, parse_csv_records

DEFAULT_API_BASE = "http://localhost:8000"
STATUS_ICONS = {
    "Accepted": "✅",
    "Rejected": "❌",
    "Pending": "⏳",
}


def get_api_base() -> str:
    """Prefer Streamlit secrets/env var overrides for API base URL."""
    # Streamlit raises when no secrets file exists, so guard the lookup.
    secret_value: str | None = None
    try:
        secret_value = st.secrets["api_base"]
    except Exception:  # noqa: BLE001 - secrets module raises custom errors
        secret_value = None

    env_value = os.environ.get("API_BASE_URL")
    return secret_value or env_value or DEFAULT_API_BASE


def heats_to_payload(heats: Sequence[Heat], product_model: str) -> dict[str, Any]:
    """Convert engine heats into the ``/dispositions/lot`` request body."""
    return {
        "product_model": product_model,
        "heats": [
            {
                "heat_no": heat.heat_no,
                "defects": [
                    {"defect_type": obs.defect_type, "count": obs.count}
                    for obs in heat.defects
                ],
                "dimensional_samples": list(heat.dimensional_samples),
                "material_samples": [
                    {
                        "values": dict(sample.values),
                        "inclusion_types": dict(sample.inclusion_types),
                        "remarks": sample.remarks,
                    }
                    for sample in heat.material_samples
                ],
                "ladle": {"values": dict(heat.ladle.values)} if heat.ladle else None,
            }
            for heat in heats
        ],
    }


def status_label(status: str) -> str:
    return f"{STATUS_ICONS.get(status, '')} {status}".strip()


@st.cache_data(ttl=600)
def load_tolerance_bands() -> list[dict[str, Any]]:
    return _request_api("GET", "/spec-limits/tolerance-bands")


@st.cache_data(ttl=600)
def load_spec_limits() -> dict[str, Any]:
    return _request_api("GET", "/spec-limits/")


def evaluate_lot(payload: dict[str, Any]) -> dict[str, Any]:
    """Post the lot to the API; verdicts are never cached client-side."""
    return _request_api("POST", "/dispositions/lot", json=payload)


def _request_api(method: str, path: str, **kwargs: Any) -> Any:
    base_url = get_api_base().rstrip("/")
    url = f"{base_url}{path}"
    with httpx.Client(timeout=30, follow_redirects=True) as client:
        response = client.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()


def _render_heat(heat: dict[str, Any]) -> None:
    status = heat["heat_status"]
    header = f"Heat {heat['heat_no']}: {status_label(status)}"
    with st.expander(header, expanded=status != "Accepted"):
        cols = st.columns(3)
        cols[0].metric("Visual", status_label(heat["visual_status"]), f"defects={heat['visual']['sum']}")
        cols[1].metric(
            "Dimensional",
            status_label(heat["dimensional_status"]),
            f"invalid={heat['dimensional']['invalid_count']}",
        )
        cols[2].metric("Material", status_label(heat["material_status"]))

        if heat["visual"]["errors"]:
            st.warning(f"Defect counts: {heat['visual']['errors']}")

        bad_samples = [
            {"sample": idx, "message": check["message"]}
            for idx, check in enumerate(heat["dimensional"]["per_sample"], start=1)
            if not check["valid"]
        ]
        if bad_samples:
            st.dataframe(pd.DataFrame(bad_samples), use_container_width=True)

        material_errors = [
            {"sample": idx, "attribute": attribute, "message": message}
            for idx, sample in enumerate(heat["material"]["per_sample"], start=1)
            for attribute, message in sample["errors"].items()
        ]
        if material_errors:
            st.dataframe(pd.DataFrame(material_errors), use_container_width=True)

        if heat["material"]["ladle"]:
            st.caption("Ladle analysis (reference only)")
            st.dataframe(pd.DataFrame(heat["material"]["ladle"]), use_container_width=True)


def main() -> None:
    st.set_page_config(page_title="Raw Material Inspection", layout="wide")
    st.title("Raw Material Inspection Verdicts")
    st.caption("Upload a heat sheet to evaluate visual, dimensional and material results")

    with st.sidebar:
        st.header("Lot")
        try:
            bands = load_tolerance_bands()
        except httpx.HTTPError as exc:
            st.error(f"API unavailable: {exc}")
            return
        product_model = st.selectbox("Product model", [band["model"] for band in bands])
        uploaded = st.file_uploader("Heat sheet (CSV)", type=["csv"])

        with st.expander("Spec limits"):
            limits = load_spec_limits()
            st.caption(f"Version {limits['version']}")
            st.dataframe(
                pd.DataFrame(limits["limits"])[["attribute", "requirement"]],
                use_container_width=True,
            )

    if uploaded is None:
        st.info("No heat sheet uploaded yet.")
        return

    try:
        records, _ = parse_csv_records(
            io.StringIO(uploaded.getvalue().decode("utf-8-sig")), source=uploaded.name
        )
    except (HeatSheetError, UnicodeDecodeError) as exc:
        st.error(str(exc))
        return
    heats = build_heats(records)

    with st.spinner("Evaluating lot..."):
        try:
            lot = evaluate_lot(heats_to_payload(heats, product_model))
        except httpx.HTTPError as exc:
            st.error(f"Request failed: {exc}")
            return

    banner = {"Accepted": st.success, "Rejected": st.error}.get(lot["status"], st.warning)
    banner(f"Lot {status_label(lot['status'])} ({len(lot['heats'])} heats, limits {lot['spec_limits_version']})")
    if lot["requires_remark"]:
        st.caption("A rejection remark is mandatory when this lot is finalized.")

    for heat in lot["heats"]:
        _render_heat(heat)


if __name__ == "__main__":
    main()
