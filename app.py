"""
Uniform Inventory - Main Entry Point
Navigation hub with fleet-wide allocation overview
"""
import streamlit as st
from utils.config import config
from utils.batch_allocation import (
    BatchInventoryData,
    aggregate_allocations,
    BatchAllocationFormatters as fmt,
)
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="Uniform Inventory",
    page_icon="👕",
    layout="wide",
    initial_sidebar_state="expanded"
)

CACHE_TTL = config.get_app_setting('CACHE_TTL_SECONDS', 300)
CURRENCY = config.get_app_setting('CURRENCY', 'KES')


@st.cache_resource
def get_data():
    data = BatchInventoryData()
    data.ensure_schema()
    return data


@st.cache_data(ttl=CACHE_TTL)
def load_batches():
    return get_data().list_batches()


# ==================== CUSTOM STYLES ====================

st.markdown("""
<style>
    .module-card {
        border-radius: 12px;
        padding: 25px;
        color: white;
        text-align: center;
        height: 180px;
        display: flex;
        flex-direction: column;
        justify-content: center;
    }
    .module-card.blue {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    }
    .module-card.green {
        background: linear-gradient(135deg, #11998e 0%, #38ef7d 100%);
    }
    .module-card h3 {
        margin: 0 0 10px 0;
        font-size: 1.4rem;
    }
    .module-card p {
        margin: 0;
        font-size: 0.9rem;
        opacity: 0.9;
    }
    .module-icon {
        font-size: 2.5rem;
        margin-bottom: 10px;
    }
</style>
""", unsafe_allow_html=True)


# ==================== HOME PAGE ====================

def show_home_page():
    """Display module navigation and allocation overview"""

    st.title("👕 Uniform Inventory")
    st.caption("Track warehouse batches from receipt to students")

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        module_col1, module_col2 = st.columns(2)

        with module_col1:
            st.markdown("""
            <div class="module-card blue">
                <div class="module-icon">📦</div>
                <h3>Batch Inventory</h3>
                <p>Record allocations and review unallocated stock</p>
            </div>
            """, unsafe_allow_html=True)

            if st.button("Open Batch Inventory", key="btn_batches", use_container_width=True):
                st.switch_page("pages/1_📦_Batch_Inventory.py")

        with module_col2:
            st.markdown("""
            <div class="module-card green">
                <div class="module-icon">🔀</div>
                <h3>Product Flow</h3>
                <p>Trace stock from batch to product to student</p>
            </div>
            """, unsafe_allow_html=True)

            if st.button("Open Product Flow", key="btn_flow", use_container_width=True):
                st.switch_page("pages/2_🔀_Product_Flow.py")

    st.markdown("")
    st.markdown("---")
    st.markdown("##### 📊 Quick Overview")

    overview = aggregate_allocations(load_batches())

    stat1, stat2, stat3, stat4 = st.columns(4)
    with stat1:
        st.metric("Batches", f"{overview.batch_count:,}")
    with stat2:
        st.metric("Allocated Units", fmt.format_quantity(overview.total_allocated))
    with stat3:
        st.metric("Unallocated Value", fmt.format_currency(overview.unallocated_value, CURRENCY))
    with stat4:
        st.metric("Allocation Rate", fmt.format_allocation_rate(overview.allocation_rate))

    st.caption(f"v1.0.0 | {'☁️ Cloud' if config.is_cloud else '💻 Local'}")


# ==================== MAIN ====================

def main():
    """Main entry point"""
    show_home_page()


if __name__ == "__main__":
    main()
