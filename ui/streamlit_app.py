import os

import httpx
import streamlit as st

BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")


def get_server_info() -> dict[str, str]:
    try:
        response = httpx.get(f"{BACKEND_URL}/health", timeout=2.0)
        response.raise_for_status()
        return response.json()
    except Exception:
        return {"quoteSource": "unknown", "storeBackend": "unknown"}


def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {st.session_state.token}"}


def error_detail(response: httpx.Response) -> str:
    try:
        return response.json().get("detail", response.text)
    except ValueError:
        return response.text


st.set_page_config(page_title="Stockfolio", page_icon=":chart_with_upwards_trend:", layout="wide")
st.title("Stockfolio")
st.caption("Track holdings and value them against live quotes.")

if "token" not in st.session_state:
    st.session_state.token = None

with st.sidebar:
    server_info = get_server_info()
    st.caption(f"Quote source: **{server_info.get('quoteSource', 'unknown')}**")
    st.caption(f"Store: **{server_info.get('storeBackend', 'unknown')}**")

    if st.session_state.token is None:
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        sign_up_col, log_in_col = st.columns(2)
        if sign_up_col.button("Sign up"):
            response = httpx.post(
                f"{BACKEND_URL}/signup", json={"email": email, "password": password}, timeout=10.0
            )
            if response.status_code == 201:
                st.success("Account created. Log in to continue.")
            else:
                st.error(error_detail(response))
        if log_in_col.button("Log in"):
            response = httpx.post(
                f"{BACKEND_URL}/login", json={"email": email, "password": password or None}, timeout=10.0
            )
            if response.status_code == 200:
                st.session_state.token = response.json()["token"]
                st.rerun()
            else:
                st.error(error_detail(response))
    elif st.button("Log out"):
        st.session_state.token = None
        st.rerun()

if st.session_state.token is None:
    st.info("Sign up or log in from the sidebar.")
    st.stop()

with st.form("add_holding", clear_on_submit=True):
    st.subheader("Add holding")
    symbol_col, quantity_col, price_col = st.columns(3)
    symbol = symbol_col.text_input("Symbol")
    quantity = quantity_col.number_input("Quantity", min_value=0.0, step=1.0)
    purchase_price = price_col.number_input("Purchase price", min_value=0.0, step=0.01)
    if st.form_submit_button("Add"):
        response = httpx.post(
            f"{BACKEND_URL}/portfolio/add",
            json={"symbol": symbol, "quantity": quantity, "purchasePrice": purchase_price},
            headers=auth_headers(),
            timeout=10.0,
        )
        if response.status_code == 201:
            st.success(f"Added {response.json()['symbol']}")
        else:
            st.error(error_detail(response))

st.subheader("Portfolio")
with st.spinner("Fetching live prices..."):
    response = httpx.get(f"{BACKEND_URL}/portfolio", headers=auth_headers(), timeout=60.0)

if response.status_code in (401, 403):
    st.session_state.token = None
    st.warning("Session expired. Please log in again.")
    st.stop()
if response.status_code != 200:
    st.error(error_detail(response))
    st.stop()

summary = response.json()
value_col, pnl_col = st.columns(2)
value_col.metric("Total value", f"{summary['totalValue']:,.2f}")
pnl_col.metric("Total profit / loss", f"{summary['totalProfitLoss']:,.2f}")

for stock in summary["stocks"]:
    with st.expander(f"{stock['symbol']} · {stock['quantity']:g} @ {stock['purchasePrice']:,.2f}"):
        if stock["status"] == "valued":
            st.write(
                f"Current price **{stock['currentPrice']:,.2f}** · "
                f"value **{stock['totalValue']:,.2f}** · "
                f"P/L **{stock['profitLoss']:,.2f}**"
            )
        else:
            st.warning(f"{stock['error']} ({stock['reason']})")

        new_quantity = st.number_input(
            "Quantity", min_value=0.0, value=float(stock["quantity"]), key=f"qty-{stock['id']}"
        )
        update_col, delete_col = st.columns(2)
        if update_col.button("Update", key=f"update-{stock['id']}"):
            result = httpx.put(
                f"{BACKEND_URL}/portfolio/{stock['id']}",
                json={"quantity": new_quantity},
                headers=auth_headers(),
                timeout=10.0,
            )
            if result.status_code == 200:
                st.rerun()
            st.error(error_detail(result))
        if delete_col.button("Delete", key=f"delete-{stock['id']}"):
            result = httpx.delete(f"{BACKEND_URL}/portfolio/{stock['id']}", headers=auth_headers(), timeout=10.0)
            if result.status_code == 200:
                st.rerun()
            st.error(error_detail(result))

st.subheader("Live quote")
lookup = st.text_input("Ticker symbol", key="lookup")
if lookup:
    result = httpx.get(
        f"{BACKEND_URL}/stocks/live", params={"symbol": lookup}, headers=auth_headers(), timeout=10.0
    )
    if result.status_code == 200:
        quote = result.json()
        st.metric(
            quote["symbol"],
            f"{quote['currentPrice']:,.2f}",
            delta=f"{quote['changePercent']:.2f}%" if quote.get("changePercent") is not None else None,
        )
        st.caption(f"Volume {quote.get('volume')} · as of {quote.get('asOfDate')}")
    else:
        st.error(error_detail(result))
