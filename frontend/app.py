"""
WALKIN — Streamlit Frontend
"""

import streamlit as st
import requests
import os
import uuid
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(name)s  %(levelname)s  %(message)s")
logger = logging.getLogger("frontend")

API_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
API_BASE = f"{API_URL}/api/v1"
BACKEND_HEALTH_CHECK = f"{API_URL}/health"
DEFAULT_TIMEZONE = "Asia/Seoul"

STATUS_LABELS = {
    "normal": "정상",
    "late": "지각",
    "early": "조퇴",
    "approved": "승인",
    "pending": "대기",
    "rejected": "거부",
}

st.set_page_config(
    page_title="WALKIN",
    page_icon="📍",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ── API helpers ──────────────────────────────────────────────────────────────

def _headers() -> dict[str, str]:
    headers = {"x-request-id": str(uuid.uuid4())}
    token = st.session_state.get("token")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def api(method: str, path: str, **kwargs) -> Optional[requests.Response]:
    """Call the backend; shows connection problems in the page and returns None."""
    try:
        return requests.request(method, f"{API_BASE}{path}", headers=_headers(), timeout=10, **kwargs)
    except requests.exceptions.ConnectionError:
        st.error("Cannot reach the backend — is the service running?")
    except requests.exceptions.RequestException as exc:
        st.error(f"Request failed: {exc}")
        logger.error("Request error on %s %s: %s", method, path, exc)
    return None


def error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("error", resp.text)
    except ValueError:
        return resp.text


@st.cache_data(ttl=30, show_spinner=False)
def check_backend_health() -> bool:
    """Ping the backend health endpoint (result cached 30 s)."""
    try:
        return requests.get(BACKEND_HEALTH_CHECK, timeout=3).status_code == 200
    except Exception as exc:
        logger.warning("Backend health check failed: %s", exc)
        return False


def _store_session(body: dict) -> None:
    st.session_state.token = body["access_token"]
    st.session_state.user = body["user"]
    st.session_state.weak_password = body.get("weak_password", False)


def _sign_out() -> None:
    api("POST", "/auth/signout")
    for key in ("token", "user", "weak_password", "last_fix"):
        st.session_state.pop(key, None)


def _status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status, "-") if status else "-"


@st.cache_data(ttl=3600, show_spinner=False)
def business_timezone() -> str:
    """The backend's business timezone; falls back to the default when offline."""
    try:
        resp = requests.get(API_URL, timeout=3)
        resp.raise_for_status()
        return resp.json().get("timezone", DEFAULT_TIMEZONE)
    except Exception as exc:
        logger.warning("Timezone fetch failed, using %s: %s", DEFAULT_TIMEZONE, exc)
    return DEFAULT_TIMEZONE


def _time_label(event: Optional[dict]) -> str:
    if not event:
        return "-"
    # API timestamps are UTC ISO strings
    moment = datetime.fromisoformat(event["time"].replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(business_timezone())).strftime("%H:%M")


# ── Pages ────────────────────────────────────────────────────────────────────

def login_page() -> None:
    st.title("📍 WALKIN")
    st.caption("GPS 기반 출퇴근 관리")

    tab_in, tab_up = st.tabs(["로그인", "회원가입"])

    with tab_in:
        with st.form("signin"):
            email = st.text_input("이메일")
            password = st.text_input("비밀번호", type="password")
            submitted = st.form_submit_button("로그인", use_container_width=True)
        if submitted:
            resp = api("POST", "/auth/signin", json={"email": email, "password": password})
            if resp is not None and resp.status_code == 200:
                _store_session(resp.json())
                st.rerun()
            elif resp is not None:
                st.error(error_message(resp))

    with tab_up:
        with st.form("signup"):
            name = st.text_input("이름")
            email = st.text_input("이메일", key="signup_email")
            password = st.text_input("비밀번호", type="password", key="signup_password")
            confirm = st.text_input("비밀번호 확인", type="password")
            submitted = st.form_submit_button("가입하기", use_container_width=True)
        if submitted:
            if password != confirm:
                st.error("비밀번호가 일치하지 않습니다")
                return
            resp = api("POST", "/auth/signup", json={"email": email, "password": password, "name": name})
            if resp is not None and resp.status_code == 201:
                _store_session(resp.json())
                st.rerun()
            elif resp is not None:
                fields = (resp.json().get("details") or {}).get("fields", {})
                for message in fields.values() or [error_message(resp)]:
                    st.error(message)


def _location_input() -> dict:
    """Browsers hand GPS to JavaScript only, so the fix is entered here."""
    col_lat, col_lng, col_acc = st.columns(3)
    lat = col_lat.number_input("위도", value=37.5665, format="%.6f")
    lng = col_lng.number_input("경도", value=126.9780, format="%.6f")
    accuracy = col_acc.number_input("정확도 (m)", value=10.0, min_value=0.0)
    return {"lat": lat, "lng": lng, "accuracy": accuracy}


def _approval_form(kind: str, location: dict) -> None:
    label = "출근" if kind == "check_in" else "퇴근"
    with st.form(f"approval_{kind}"):
        st.markdown(f"**{label} 예외 승인 요청**")
        reason = st.text_area("사유 (10자 이상)")
        if st.form_submit_button("승인 요청"):
            resp = api("POST", "/approvals", json={"type": kind, "reason": reason, "location": location})
            if resp is not None and resp.status_code == 201:
                st.success("승인 요청이 접수되었습니다")
            elif resp is not None:
                st.error(error_message(resp))


def attendance_page() -> None:
    st.header("출퇴근")

    resp = api("GET", "/attendance/today")
    today = resp.json() if resp is not None and resp.status_code == 200 else None

    col_in, col_out, col_hours = st.columns(3)
    col_in.metric("출근", _time_label(today and today.get("check_in")))
    col_out.metric("퇴근", _time_label(today and today.get("check_out")))
    col_hours.metric("근무 시간", (today or {}).get("work_hours_label") or "-")

    location = _location_input()
    kind = "check_out" if today and today.get("check_in") else "check_in"
    label = "퇴근하기" if kind == "check_out" else "출근하기"

    if today and today.get("check_out"):
        st.info("오늘의 출퇴근이 완료되었습니다")
        return

    if st.button(label, type="primary", use_container_width=True):
        path = "/attendance/check-out" if kind == "check_out" else "/attendance/check-in"
        resp = api("POST", path, json={"location": location})
        if resp is None:
            return
        if resp.status_code in (200, 201):
            st.success(f"{label[:2]} 완료")
            st.rerun()
        body = resp.json()
        st.error(body.get("error", "요청에 실패했습니다"))
        if body.get("error_code") in ("OUT_OF_RANGE", "LOW_ACCURACY"):
            st.session_state.last_fix = {"kind": kind, "location": location}

    pending = st.session_state.get("last_fix")
    if pending and pending["kind"] == kind:
        resp = api("GET", "/approvals/today", params={"type": kind})
        request = resp.json() if resp is not None and resp.status_code == 200 else None
        if request and request["status"] == "pending":
            st.warning("관리자 승인 대기 중입니다")
        else:
            if request and request["status"] == "rejected":
                st.error(f"요청이 거부되었습니다: {request.get('rejection_reason') or ''}")
            _approval_form(kind, pending["location"])


def history_page() -> None:
    st.header("출퇴근 기록")

    resp = api("GET", "/attendance/months")
    months = resp.json() if resp is not None and resp.status_code == 200 else []
    if not months:
        return

    choice = st.selectbox("월 선택", months, format_func=lambda m: m["label"])
    resp = api("GET", "/attendance/monthly", params={"year": choice["year"], "month": choice["month"]})
    records = resp.json() if resp is not None and resp.status_code == 200 else []

    if not records:
        st.info("기록이 없습니다")
        return

    st.dataframe(
        [
            {
                "날짜": r["date"],
                "출근": _time_label(r.get("check_in")),
                "출근 상태": _status_label((r.get("check_in") or {}).get("status")),
                "퇴근": _time_label(r.get("check_out")),
                "퇴근 상태": _status_label((r.get("check_out") or {}).get("status")),
                "근무 시간": r.get("work_hours_label") or "-",
            }
            for r in records
        ],
        use_container_width=True,
        hide_index=True,
    )

    resp = api("GET", "/approvals/mine")
    requests_mine = resp.json() if resp is not None and resp.status_code == 200 else []
    if requests_mine:
        st.subheader("승인 요청")
        for r in requests_mine:
            kind = "출근" if r["type"] == "check_in" else "퇴근"
            st.markdown(f"- {r['date']} {kind} · **{_status_label(r['status'])}** · {r['reason']}")


def profile_page() -> None:
    st.header("내 정보")
    user = st.session_state.user

    if st.session_state.get("weak_password"):
        st.warning("현재 비밀번호가 보안 기준을 충족하지 않습니다. 비밀번호를 변경해주세요.")

    with st.form("profile"):
        name = st.text_input("이름", value=user["name"])
        if st.form_submit_button("저장"):
            resp = api("PATCH", "/auth/me", json={"name": name})
            if resp is not None and resp.status_code == 200:
                st.session_state.user = resp.json()
                st.success("저장되었습니다")
            elif resp is not None:
                st.error(error_message(resp))

    with st.form("password"):
        current = st.text_input("현재 비밀번호", type="password")
        new = st.text_input("새 비밀번호", type="password")
        confirm = st.text_input("새 비밀번호 확인", type="password")
        if st.form_submit_button("비밀번호 변경"):
            resp = api(
                "POST",
                "/auth/password",
                json={"current_password": current, "new_password": new, "confirm_password": confirm},
            )
            if resp is not None and resp.status_code == 200:
                st.session_state.weak_password = False
                st.success("비밀번호가 변경되었습니다")
            elif resp is not None:
                st.error(error_message(resp))


def admin_dashboard_page() -> None:
    st.header("관리자 대시보드")

    date = st.date_input("날짜")
    resp = api("GET", "/admin/dashboard", params={"date": date.strftime("%Y-%m-%d")})
    if resp is None or resp.status_code != 200:
        return
    body = resp.json()
    stats = body["stats"]

    cols = st.columns(5)
    cols[0].metric("전체", stats["total"])
    cols[1].metric("출근", stats["checked_in"])
    cols[2].metric("지각", stats["late"])
    cols[3].metric("결근", stats["absent"])
    cols[4].metric("출근율", f"{stats['attendance_rate']}%")

    st.dataframe(
        [
            {
                "이름": e["user"]["name"],
                "이메일": e["user"]["email"],
                "출근": _time_label((e["attendance"] or {}).get("check_in")),
                "퇴근": _time_label((e["attendance"] or {}).get("check_out")),
                "상태": _status_label(((e["attendance"] or {}).get("check_in") or {}).get("status")),
            }
            for e in body["employees"]
        ],
        use_container_width=True,
        hide_index=True,
    )


def admin_approvals_page() -> None:
    st.header("승인 관리")

    resp = api("GET", "/admin/approvals")
    pending = resp.json() if resp is not None and resp.status_code == 200 else []
    if not pending:
        st.info("대기 중인 요청이 없습니다")
        return

    for r in pending:
        kind = "출근" if r["type"] == "check_in" else "퇴근"
        with st.container(border=True):
            st.markdown(f"**{r['name']}** · {r['date']} {kind}")
            st.caption(f"위치 {r['location']['lat']:.5f}, {r['location']['lng']:.5f} · 정확도 {r['location']['accuracy']:g}m")
            st.write(r["reason"])
            col_ok, col_reason, col_no = st.columns([1, 3, 1])
            if col_ok.button("승인", key=f"approve_{r['id']}"):
                result = api("POST", f"/admin/approvals/{r['id']}/approve")
                if result is not None and result.status_code != 200:
                    st.error(error_message(result))
                else:
                    st.rerun()
            reason = col_reason.text_input("거부 사유", key=f"reason_{r['id']}", label_visibility="collapsed")
            if col_no.button("거부", key=f"reject_{r['id']}"):
                result = api("POST", f"/admin/approvals/{r['id']}/reject", json={"rejection_reason": reason})
                if result is not None and result.status_code != 200:
                    st.error(error_message(result))
                else:
                    st.rerun()


def admin_offices_page() -> None:
    st.header("사무실 관리")

    resp = api("GET", "/admin/offices")
    offices = resp.json() if resp is not None and resp.status_code == 200 else []

    if not offices and st.button("기본 사무실 생성"):
        api("POST", "/admin/offices/initialize-defaults")
        st.rerun()

    for office in offices:
        with st.expander(f"{office['name']} {'' if office['is_active'] else '(비활성)'}"):
            st.caption(office["address"])
            st.write(
                f"{office['lat']:.5f}, {office['lng']:.5f} · "
                f"출근 {office['check_in_radius']:g}m · 퇴근 {office['check_out_radius']:g}m"
            )
            col_toggle, col_delete = st.columns(2)
            toggle = "비활성화" if office["is_active"] else "활성화"
            if col_toggle.button(toggle, key=f"toggle_{office['id']}"):
                api("PATCH", f"/admin/offices/{office['id']}", json={"is_active": not office["is_active"]})
                st.rerun()
            if col_delete.button("삭제", key=f"delete_{office['id']}"):
                api("DELETE", f"/admin/offices/{office['id']}")
                st.rerun()

    with st.form("new_office"):
        st.markdown("**사무실 추가**")
        name = st.text_input("이름")
        address = st.text_input("주소")
        col_lat, col_lng = st.columns(2)
        lat = col_lat.number_input("위도", value=37.5665, format="%.6f")
        lng = col_lng.number_input("경도", value=126.9780, format="%.6f")
        col_in, col_out = st.columns(2)
        check_in_radius = col_in.number_input("출근 반경 (m)", value=1000.0, min_value=1.0)
        check_out_radius = col_out.number_input("퇴근 반경 (m)", value=3000.0, min_value=1.0)
        if st.form_submit_button("추가"):
            resp = api(
                "POST",
                "/admin/offices",
                json={
                    "name": name,
                    "address": address,
                    "lat": lat,
                    "lng": lng,
                    "check_in_radius": check_in_radius,
                    "check_out_radius": check_out_radius,
                },
            )
            if resp is not None and resp.status_code == 201:
                st.rerun()
            elif resp is not None:
                st.error(error_message(resp))


# ── Layout ───────────────────────────────────────────────────────────────────

backend_ok = check_backend_health()

if "token" not in st.session_state:
    if not backend_ok:
        st.warning("Backend offline")
    login_page()
    st.stop()

user = st.session_state.user
pages = {
    "출퇴근": attendance_page,
    "기록": history_page,
    "내 정보": profile_page,
}
if user["role"] == "admin":
    pages.update({
        "대시보드": admin_dashboard_page,
        "승인 관리": admin_approvals_page,
        "사무실 관리": admin_offices_page,
    })

with st.sidebar:
    st.markdown(f"### 📍 WALKIN\n{user['name']} ({user['email']})")
    st.caption("Connected" if backend_ok else "Offline")
    page = st.radio("메뉴", list(pages), label_visibility="collapsed")
    st.divider()
    if st.button("로그아웃", use_container_width=True):
        _sign_out()
        st.rerun()

pages[page]()
