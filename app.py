from __future__ import annotations
import asyncio
import streamlit as st
from loguru import logger
from gradebook.errors import ComparisonPreconditionError, GradebookError
from gradebook.log import setup_logging
from gradebook.models import ALL_COLUMNS
from gradebook.report import differences_frame, missing_frame, summary_frame
from gradebook.session import SLOT_A, SLOT_B, ComparisonSession

setup_logging()
st.set_page_config(page_title="Đối chiếu điểm học sinh", layout="wide")
st.title("Đối chiếu điểm học sinh")
# =========================

# Trạng thái phiên
# =========================
st.session_state.setdefault("session", ComparisonSession())
st.session_state.setdefault("upload_keys", {SLOT_A: None, SLOT_B: None})
st.session_state.setdefault("selected_columns", list(ALL_COLUMNS))
st.session_state.setdefault("uploader_gen", 0)
st.session_state.setdefault("errors", [])

session: ComparisonSession = st.session_state["session"]
SLOT_TITLES = {SLOT_A: "File 1", SLOT_B: "File 2"}


def _upload_key(up) -> tuple:
    return (getattr(up, "file_id", None), up.name, up.size)


async def _load_changed(changed: list) -> list:
    # mỗi file là một tác vụ riêng; lỗi của file này không chặn file kia
    tasks = [session.upload(slot, up.getvalue(), up.name) for slot, up in changed]
    return await asyncio.gather(*tasks, return_exceptions=True)
# =========================

# Tải file
# =========================
gen = st.session_state["uploader_gen"]
c1, c2 = st.columns(2)
with c1:
    up_a = st.file_uploader("File 1", type=["xlsx", "xlsm", "xls", "csv"], key=f"up_a_{gen}")
with c2:
    up_b = st.file_uploader("File 2", type=["xlsx", "xlsm", "xls", "csv"], key=f"up_b_{gen}")

changed = []
for slot, up in ((SLOT_A, up_a), (SLOT_B, up_b)):
    if up is not None and st.session_state["upload_keys"][slot] != _upload_key(up):
        st.session_state["upload_keys"][slot] = _upload_key(up)
        changed.append((slot, up))

if changed:
    errors = []
    with st.spinner("Đang xử lý..."):
        outcomes = asyncio.run(_load_changed(changed))
    for (slot, up), outcome in zip(changed, outcomes):
        if isinstance(outcome, GradebookError):
            errors.append(f"Lỗi khi đọc {SLOT_TITLES[slot].lower()}: {outcome}")
        elif isinstance(outcome, Exception):
            logger.exception("Lỗi không xác định khi đọc {}", up.name)
            errors.append(f"Lỗi khi đọc {SLOT_TITLES[slot].lower()}: Lỗi không xác định")
    st.session_state["errors"] = errors
    # tải file mới thì chọn lại tất cả các cột
    st.session_state["selected_columns"] = list(ALL_COLUMNS)

for msg in st.session_state["errors"]:
    st.error(msg)

for slot in (SLOT_A, SLOT_B):
    parsed = session.file(slot)
    if parsed is None:
        continue
    st.success(f"✓ Đã đọc {len(parsed.sheets)} sheet từ {parsed.file_label}")
    if parsed.warnings:
        with st.expander(f"{len(parsed.warnings)} sheet bị bỏ qua trong {parsed.file_label}", expanded=False):
            for w in parsed.warnings:
                st.write(f"- {w}")
# =========================

# Tuỳ chọn đối chiếu
# =========================
st.subheader("Đối chiếu điểm học sinh")
multi_sheet = st.checkbox("Đối chiếu nhiều lớp", value=False)

b1, b2, _ = st.columns([1, 1, 6])
with b1:
    if st.button("Chọn tất cả"):
        st.session_state["selected_columns"] = list(ALL_COLUMNS)
with b2:
    if st.button("Bỏ chọn tất cả"):
        st.session_state["selected_columns"] = []

selected = st.multiselect("Cột cần đối chiếu", list(ALL_COLUMNS), key="selected_columns")

r1, r2 = st.columns([1, 7])
with r1:
    run = st.button("Đối chiếu", type="primary", disabled=not session.ready)
with r2:
    if st.button("Làm lại"):
        session.reset()
        st.session_state["upload_keys"] = {SLOT_A: None, SLOT_B: None}
        st.session_state["errors"] = []
        st.session_state["uploader_gen"] = gen + 1
        st.rerun()

if run:
    try:
        session.compare(multi_sheet=multi_sheet, selected_columns=selected)
    except ComparisonPreconditionError as e:
        st.error(f"Lỗi khi đối chiếu: {e}")
# =========================

# Kết quả
# =========================
result = session.result
if result is not None:
    st.subheader("Tổng quan")
    m1, m2, m3 = st.columns(3)
    with m1:
        st.metric("Tổng sự khác biệt", result.total_differences)
    with m2:
        st.metric("Chỉ có trong file 2", result.total_missing_in_a)
    with m3:
        st.metric("Chỉ có trong file 1", result.total_missing_in_b)

    if not result.sheets:
        st.info("Không có sheet nào trùng tên để đối chiếu.")
    elif len(result.sheets) > 1:
        st.dataframe(summary_frame(result), width="stretch", hide_index=True)

    for sheet in result.sheets:
        with st.expander(f"Sheet: {sheet.sheet_name}", expanded=len(result.sheets) == 1):
            if not sheet.differences and not sheet.missing_in_a and not sheet.missing_in_b:
                st.success("✓ Không có sự khác biệt")
                continue
            if sheet.missing_in_a or sheet.missing_in_b:
                st.dataframe(missing_frame(sheet), width="stretch", hide_index=True)
            if sheet.differences:
                st.write(f"Sự khác biệt: {len(sheet.differences)}")
                st.dataframe(differences_frame(sheet), width="stretch", hide_index=True)
            else:
                st.write("Không có sự khác biệt về điểm.")
