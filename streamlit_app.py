"""
Tile Mosaic — Gallery Edition

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time
from pathlib import Path

import streamlit as st
from PIL import Image, ImageDraw

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import resize_to_fill
from tile_mosaic.session import MosaicSession

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Cormorant+Garamond:ital,wght@0,300;0,400;1,300&family=Inter:wght@200;300;400&display=swap');

    .stApp {
        background-color: #faf9f6;
        color: #2a2a2a;
        font-family: 'Inter', 'Helvetica Neue', sans-serif;
    }
    .block-container {
        max-width: 1000px;
        padding-top: 3.5rem;
        padding-bottom: 4rem;
    }
    .gallery-title {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 2.8rem;
        font-weight: 300;
        letter-spacing: 0.06em;
        text-align: center;
        color: #1a1a1a;
        border-bottom: 1px solid #1a1a1a;
        padding-bottom: 0.6rem;
        margin-bottom: 0.5rem;
    }
    .gallery-subtitle {
        font-family: 'Inter', sans-serif;
        font-size: 0.75rem;
        font-weight: 300;
        line-height: 1.8;
        margin-bottom: 3.5rem;
    }
    .label-detail {
        font-family: 'Cormorant Garamond', serif;
        font-style: italic;
        text-align: center;
        color: #a0a09a;
    }
    .processing-text {
        font-family: 'Cormorant Garamond', serif;
        font-size: 1rem;
        font-weight: 300;
        font-style: italic;
        color: #a0a09a;
        padding: 1.5rem 0;
    }
    hr { border: none; border-top: 1px solid #e0ded8; margin: 2.5rem 0; }

    /* Hide streamlit chrome */
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    header {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    bg = (250, 249, 246)
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), bg)
    canvas.paste(img, (border, border), img if img.mode == "RGBA" else None)
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


def _session() -> MosaicSession:
    if "session" not in st.session_state:
        st.session_state.session = MosaicSession()
    return st.session_state.session


# -- Title -------------------------------------------------------------
st.markdown(
    '<div class="gallery-title">Tile Mosaic</div>',
    unsafe_allow_html=True,
)
st.markdown(
    '<div class="gallery-subtitle">'
    "Upload an image and point the app at a folder of photographs. The image "
    "is reduced to a small grid, and every cell is replaced by the library "
    "photo whose average colour is closest to it. Cells with no tile close "
    "enough stay empty. With uniqueness enabled each photo is used once "
    "before any is reused."
    "</div>",
    unsafe_allow_html=True,
)

# -- Controls ----------------------------------------------------------
ctrl1, ctrl2 = st.columns(2)
with ctrl1:
    grid_w = st.slider("Grid width", 4, 128, _DEFAULTS.intermediate_width)
    grid_h = st.slider("Grid height", 4, 128, _DEFAULTS.intermediate_height)
    subpixel = st.slider("Tile size (px)", 4, 64, _DEFAULTS.subpixel_size)
with ctrl2:
    threshold = st.slider(
        "Threshold", 0, 442, int(_DEFAULTS.unique_threshold),
        help="A tile is only placed if its colour distance is below this.",
    )
    unique = st.toggle("Prioritise unique tiles", _DEFAULTS.prioritize_unique)
    color_space = st.radio("Colour space", ["rgb", "lab"], horizontal=True)

library = st.text_input("Tile library folder", value=st.session_state.get("library", ""))
st.session_state.library = library

st.markdown("---")

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader(
    "Select artwork", type=["jpg", "jpeg", "png", "webp", "bmp", "jfif"],
)

# Persist upload in session state so control changes don't clear it
if uploaded is not None:
    st.session_state.uploaded_data = uploaded.getvalue()
elif "uploaded_data" not in st.session_state:
    st.session_state.uploaded_data = None

if st.session_state.uploaded_data is not None:
    session = _session()
    original = Image.open(io.BytesIO(st.session_state.uploaded_data)).convert("RGBA")

    if st.button("COMPOSE", type="primary", use_container_width=True):
        if not library.strip():
            st.error("Enter a tile library folder first.")
            st.stop()
        progress = st.empty()
        progress.markdown(
            '<div class="processing-text">Composing ...</div>',
            unsafe_allow_html=True,
        )
        t0 = time.perf_counter()
        try:
            cfg = session.get_config().updated(
                intermediate_width=grid_w,
                intermediate_height=grid_h,
                subpixel_size=subpixel,
                unique_threshold=threshold,
                prioritize_unique=unique,
                color_space=color_space,
            )
            session.set_config(cfg)
            session.use_image(original)
            lib_path = Path(library.strip())
            if (
                session.catalog is None
                or lib_path != session.config.library_path
            ):
                session.rebuild_catalog(lib_path)
            canvas = session.refresh()
        except MosaicError as exc:
            progress.empty()
            st.error(str(exc))
            st.stop()
        elapsed = time.perf_counter() - t0
        progress.empty()

        result = session.result
        st.markdown("---")

        mosaic_img = Image.fromarray(canvas)
        st.image(_add_passepartout(mosaic_img, border=28), use_container_width=True)

        buf = io.BytesIO()
        mosaic_img.save(buf, format="PNG")
        _, dl_col, _ = st.columns([1, 2, 1])
        with dl_col:
            st.download_button(
                "SAVE ART",
                data=buf.getvalue(),
                file_name="tile_mosaic.png",
                mime="image/png",
                use_container_width=True,
            )

        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Grid", f"{grid_w} × {grid_h}")
        m2.metric("Tiles", f"{len(session.catalog):,}")
        m3.metric("Matched", f"{result.stats.matches:,}")
        m4.metric("Time", f"{elapsed:.1f} s")
    else:
        prev1, prev2 = st.columns(2)
        with prev1:
            st.image(original, use_container_width=True)
            st.markdown('<div class="label-detail">Source</div>', unsafe_allow_html=True)
        with prev2:
            grid = Image.fromarray(resize_to_fill(original, grid_w, grid_h))
            st.image(
                grid.resize((grid_w * subpixel, grid_h * subpixel), Image.NEAREST),
                use_container_width=True,
            )
            st.markdown(
                f'<div class="label-detail">{grid_w} &times; {grid_h}</div>',
                unsafe_allow_html=True,
            )
else:
    st.markdown(
        '<p style="font-family: Cormorant Garamond, Georgia, serif; '
        "color: #bbb; font-size: 1rem; font-weight: 300; "
        'font-style: italic; margin-top: 2rem;">'
        "Select an artwork to begin.</p>",
        unsafe_allow_html=True,
    )
