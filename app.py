import json

import pandas as pd
import requests
import streamlit as st

import config

# API Configuration
API_BASE_URL = config.API_BASE_URL
REQUEST_TIMEOUT = 10


def check_api_connection():
    """Check if the FastAPI server is running"""
    try:
        response = requests.get(f"{API_BASE_URL}/", timeout=REQUEST_TIMEOUT)
        return response.status_code == 200
    except requests.RequestException:
        return False


def request_settlements(snapshot):
    """Post a ledger snapshot and return (body, success)"""
    try:
        response = requests.post(f"{API_BASE_URL}/settlements/", json=snapshot, timeout=REQUEST_TIMEOUT)
        return response.json(), response.status_code == 200
    except requests.RequestException as e:
        return {"detail": str(e)}, False


def request_split(expense_id, amount, split_method, participants, params=None):
    """Call the split calculator API"""
    payload = {
        "expense_id": expense_id,
        "amount": amount,
        "split_method": split_method,
        "participants": participants,
        "params": params or {},
    }
    try:
        response = requests.post(f"{API_BASE_URL}/splits/", json=payload, timeout=REQUEST_TIMEOUT)
        return response.json(), response.status_code == 200
    except requests.RequestException as e:
        return {"detail": str(e)}, False


def parse_snapshot(text):
    """Parse snapshot JSON, returning (snapshot, error message)"""
    try:
        snapshot = json.loads(text)
    except json.JSONDecodeError as e:
        return None, f"Invalid JSON: {e.msg} (line {e.lineno})"
    if not isinstance(snapshot, dict):
        return None, "The snapshot must be a JSON object with expenses, shares and transfers"
    return snapshot, None


def balances_frame(balances):
    """Balances as a table, largest creditor first"""
    df = pd.DataFrame(balances, columns=["user_id", "amount"])
    df["amount"] = df["amount"].astype(float)
    df["status"] = df["amount"].map(lambda a: "is owed" if a > 0 else ("owes" if a < 0 else "settled up"))
    return df.sort_values("amount", ascending=False, kind="stable").reset_index(drop=True)


def plan_frame(plan):
    df = pd.DataFrame(plan, columns=["from", "to", "amount"])
    df["amount"] = df["amount"].astype(float)
    return df


# Main App
def main():
    st.set_page_config(page_title="Settle Up", page_icon="💸", layout="wide")
    st.title("💸 Settle Up")

    if not check_api_connection():
        st.error(f"API Connection Error: no settlement server at {API_BASE_URL}. Start it with: python main.py")
        st.stop()

    app_mode = st.sidebar.selectbox("Choose App Mode", ["Settlement Plan", "Split Calculator"])

    if app_mode == "Settlement Plan":
        settlement_page()
    else:
        split_page()


def settlement_page():
    st.header("📊 Balances & Settlement Plan")

    uploaded_file = st.file_uploader("Ledger snapshot (JSON)", type=["json"])
    text = uploaded_file.getvalue().decode("utf-8") if uploaded_file is not None else ""
    text = st.text_area("Or paste the snapshot", value=text, height=240)

    if not st.button("Calculate", type="primary") or not text.strip():
        return

    snapshot, error = parse_snapshot(text)
    if error:
        st.error(error)
        return

    with st.spinner("Calculating settlements..."):
        result, success = request_settlements(snapshot)

    if success:
        currency = result.get("currency", "")
        summary = result["summary"]
        col_a, col_b, col_c = st.columns(3)
        col_a.metric("Total owed", f"{currency} {float(summary['total_owed']):.2f}")
        col_b.metric("People who owe", summary["debtor_count"])
        col_c.metric("Transfers needed", len(result["plan"]))

        st.subheader("Balances")
        st.dataframe(balances_frame(result["balances"]), use_container_width=True)

        st.subheader("Settlement Plan")
        if result["plan"]:
            st.dataframe(plan_frame(result["plan"]), use_container_width=True)
        else:
            st.success("Everyone is settled up.")
    elif result.get("balances") is not None:
        # Ledger fault: raw balances are still worth showing
        st.error(f"Ledger integrity problem: {result.get('detail')}. No settlement plan was produced.")
        st.dataframe(balances_frame(result["balances"]), use_container_width=True)
    else:
        st.error(f"Could not calculate settlements: {result.get('detail', 'Unknown error')}")


def split_page():
    st.header("🧮 Split Calculator")

    expense_id = st.text_input("Expense ID", value="draft")
    amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
    split_method = st.radio("Split Method", ["equal", "percentage", "custom"], horizontal=True)
    participants_text = st.text_input("Participants (comma separated)")
    participants = [p.strip() for p in participants_text.split(",") if p.strip()]

    params = {}
    if split_method != "equal":
        label = "Percentage" if split_method == "percentage" else "Amount"
        for user_id in participants:
            params[user_id] = st.number_input(f"{label} for {user_id}", min_value=0.0, step=0.01, key=f"param_{user_id}")

    if st.button("Split", type="primary"):
        result, success = request_split(expense_id, amount, split_method, participants, params)
        if success:
            st.dataframe(pd.DataFrame(result, columns=["user_id", "amount_owed"]), use_container_width=True)
        else:
            st.error(result.get("detail", "Unknown error"))


if __name__ == "__main__":
    main()
