import streamlit as st
import tempfile, zipfile, shutil, sys, subprocess
from pathlib import Path

st.set_page_config(page_title="Invoice Splitter")

st.title("Invoice Splitter")
st.markdown("""
Upload the three PDFs of one billing run:
- CHSS invoices
- ShareBiz statement of account
- ShareBiz invoices (by service type)

and optionally the Excel template. The app regroups every page per company
and lets you download one PDF (and one Excel) per company.
""")

chss_pdf = st.file_uploader("CHSS invoice PDF", type=["pdf"])
soa_pdf = st.file_uploader("ShareBiz SOA PDF", type=["pdf"])
sharebiz_pdf = st.file_uploader("ShareBiz invoice PDF", type=["pdf"])
template_xlsx = st.file_uploader("Excel template (optional)", type=["xlsx"])

text_backend = st.selectbox("Text extraction backend", ["pymupdf", "pypdf"], index=0)
with_summary = st.checkbox("Include summary.xlsx", value=True)


def run_split(
    root: Path,
    chss: Path,
    soa: Path,
    sharebiz: Path,
    template: Path | None,
    backend: str,
    summary: bool,
) -> Path:
    """
    Wraps the splitter CLI as a subprocess call and zips whatever it wrote.
    """
    out_dir = root / "out"
    out_dir.mkdir(parents=True, exist_ok=True)

    args = [
        sys.executable, "-m", "splitter",
        "--chss", str(chss),
        "--soa", str(soa),
        "--sharebiz", str(sharebiz),
        "--out", str(out_dir),
        "--text-backend", backend,
        # a template path that does not exist just skips the Excel outputs
        "--template", str(template) if template else str(root / "no_template.xlsx"),
    ]
    if summary:
        args.append("--summary")

    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        cwd=str(Path(__file__).resolve().parent),
    )

    if result.returncode != 0:
        raise RuntimeError(
            "CLI run failed "
            f"(exit code {result.returncode}).\n\n"
            f"STDOUT:\n{result.stdout}\n\n"
            f"STDERR:\n{result.stderr}"
        )

    zip_path = root / "companies.zip"
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for p in sorted(out_dir.iterdir()):
            if p.is_file():
                zf.write(p, arcname=p.name)
    return zip_path


if chss_pdf and soa_pdf and sharebiz_pdf:
    status = st.empty()

    if st.button("▶️ Split invoices"):
        tmpdir = Path(tempfile.mkdtemp())
        try:
            paths = {}
            for key, upload in (("chss", chss_pdf), ("soa", soa_pdf), ("sharebiz", sharebiz_pdf),
                                ("template", template_xlsx)):
                if upload is None:
                    continue
                p = tmpdir / f"{key}_{upload.name}"
                p.write_bytes(upload.read())
                paths[key] = p

            status.info("⚙️ Splitting... please wait")
            zip_path = run_split(
                tmpdir,
                paths["chss"],
                paths["soa"],
                paths["sharebiz"],
                paths.get("template"),
                text_backend,
                with_summary,
            )
            status.success("Split complete!")
            st.download_button(
                label="⬇️ Download companies (.zip)",
                data=zip_path.read_bytes(),
                file_name=zip_path.name,
                mime="application/zip",
            )
        except Exception as e:
            status.error(f"❌ Error during processing: {e}")
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)
else:
    st.info("Please upload all three PDFs first.")
