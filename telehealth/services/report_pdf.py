"""PDF rendering of medical reports built on fpdf2."""

from datetime import date
from typing import Optional

from fpdf import FPDF, XPos, YPos
from loguru import logger


def _latin1(text: str) -> str:
    # Core fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


class MedicalReportPDF(FPDF):
    """Single-column A4 report: title, patient block, then text sections."""

    def __init__(self) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.set_auto_page_break(auto=True, margin=20)
        self._family = "Helvetica"
        self.add_page()

    def title_block(self, text: str) -> None:
        self.set_font(self._family, "B", 16)
        self.cell(0, 10, _latin1(text), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(4)

    def kv_line(self, label: str, value: str) -> None:
        self.set_font(self._family, "", 11)
        self.multi_cell(0, 6, _latin1(f"{label}: {value}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def section(self, heading: str, body: str) -> None:
        self.ln(4)
        self.set_font(self._family, "BU", 12)
        self.cell(0, 8, _latin1(heading), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font(self._family, "", 12)
        self.multi_cell(0, 6, _latin1(body), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def render(self) -> bytes:
        return bytes(self.output())


def render_medical_report(
    patient_name: str,
    report_type: str,
    report_date: date,
    results: str,
    recommendations: Optional[str] = None,
    notes: Optional[str] = None,
    provider_name: Optional[str] = None
) -> bytes:
    """
    Builds the report PDF. Recommendations and notes sections are only
    emitted when present.
    """
    pdf = MedicalReportPDF()
    pdf.title_block("Medical Report")
    pdf.kv_line("Patient", patient_name)
    pdf.kv_line("Report type", report_type)
    pdf.kv_line("Date", report_date.isoformat())
    if provider_name:
        pdf.kv_line("Provider", provider_name)

    pdf.section("Results:", results)
    if recommendations:
        pdf.section("Recommendations:", recommendations)
    if notes:
        pdf.section("Additional Notes:", notes)

    content = pdf.render()
    logger.debug(f"Rendered {report_type} report for {patient_name}: {len(content)} bytes")
    return content
