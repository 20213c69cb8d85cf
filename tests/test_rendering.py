import unittest
from datetime import datetime
from importlib import util as importlib_util

from dateutil import tz

JINJA_AVAILABLE = importlib_util.find_spec("jinja2") is not None
if JINJA_AVAILABLE:
    from invoice_view.rendering import render_page

FULL_QUERY = (
    "tema=AzulAbstractProHF"
    "&Logo2=https%3A%2F%2Fexample.com%2Flogo2.png"
    "&Factura=Factura%3A+F-001%0ASerie+A"
    "&Fecha=2026-10-19&Hora=10%3A30&FormaPago=Efectivo"
    "&De=Empresa+SA%0ARUC%3A+123"
    "&Cliente=Cliente%3A+Juan+P%C3%A9rez"
    "&columna=Producto&columna=Cantidad&columna=Precio"
    "&Producto=Silla%7Croja,Mesa&Cantidad=1,2&Precio=10.00,40.00"
    "&SumDataLine=Env%C3%ADo%3A+5.00"
    "&Subtotal=90.00&Descuento=5.00&IVALine=12%25&IVAMonto=10.20&Total=100.20"
    "&Nota=Gracias+por+su+compra&filename=Factura+F-001"
)

SECTIONS = {
    "Factura": 'id="factura-line"',
    "Fecha": 'id="fecha-line"',
    "Hora": 'id="hora-line"',
    "FormaPago": 'id="forma-pago-line"',
    "De": 'id="de-section"',
    "Cliente": 'id="para-section"',
    "Subtotal": 'id="subtotal-line"',
    "Descuento": 'id="descuento-line"',
    "IVAMonto": 'id="iva-label-line"',
    "Total": 'id="total-line"',
    "Nota": 'id="nota-section"',
    "NotaP": 'id="print-footer"',
}


@unittest.skipUnless(JINJA_AVAILABLE, "jinja2 is not installed")
class RenderingTests(unittest.TestCase):
    def test_sections_present_iff_parameter_non_empty(self) -> None:
        for key, marker in SECTIONS.items():
            with self.subTest(key=key):
                self.assertIn(marker, render_page(f"{key}=valor"))
                self.assertNotIn(marker, render_page(f"{key}="))
                self.assertNotIn(marker, render_page("Otro=1"))

    def test_full_invoice_markup(self) -> None:
        html = render_page(FULL_QUERY)

        self.assertIn('<body class="theme-azul use-hf-azul"', html)
        self.assertIn('id="screen-header-azul"', html)
        self.assertIn('<strong class="dynamic-label">Factura:</strong> F-001<br>Serie A', html)
        self.assertIn('<th class="text-left">Producto</th>', html)
        self.assertIn('<th class="text-right">Cantidad</th>', html)
        self.assertIn('<th class="text-right">Precio</th>', html)
        self.assertIn('<td class="text-left">Silla<br>roja</td>', html)
        self.assertIn("<span>Envío:</span><span>5.00</span>", html)
        self.assertIn("<span>IVA (12%):</span>", html)
        self.assertIn('src="https://example.com/logo2.png"', html)
        self.assertIn('data-filename="Factura F-001.pdf"', html)
        self.assertIn('data-auto-generate="true"', html)

    def test_total_lines_replace_total(self) -> None:
        html = render_page("Total=10&TotalDataLine=Total+USD%3A+10%0ATotal+EUR%3A+9")

        self.assertNotIn('id="total-line"', html)
        self.assertIn("<span>Total USD:</span><span>10</span>", html)
        self.assertIn("<span>Total EUR:</span><span>9</span>", html)

    def test_empty_table_messages(self) -> None:
        self.assertIn("No se ha definido la estructura de la tabla.", render_page(""))
        self.assertIn("No hay elementos para mostrar.", render_page("columna=Producto"))

    def test_default_theme_and_logo(self) -> None:
        html = render_page("")

        self.assertIn('<body class="bg-gray-100"', html)
        self.assertIn('id="logo1"', html)
        self.assertNotIn('id="logo2"', html)
        self.assertIn('data-auto-generate="false"', html)

    def test_print_render_has_no_buttons_or_script(self) -> None:
        html = render_page("Total=10&isPrinting=true")

        self.assertNotIn("download-pdf-btn", html)
        self.assertNotIn("<script>", html)

    def test_generation_task_resets_across_page_lifetime(self) -> None:
        html = render_page("Total=10")

        self.assertIn('window.addEventListener("pagehide"', html)
        self.assertIn('window.addEventListener("pageshow"', html)
        self.assertIn("event.persisted", html)
        dispose = html[html.index("PdfTask.prototype.dispose"):html.index("PdfTask.prototype.reset")]
        self.assertIn('this.setState("idle")', dispose)
        self.assertIn("URL.revokeObjectURL", dispose)

    def test_user_text_is_escaped(self) -> None:
        html = render_page("Nota=%3Cscript%3Ealert(1)%3C%2Fscript%3E")

        self.assertIn("&lt;script&gt;alert(1)&lt;/script&gt;", html)

    def test_print_footer(self) -> None:
        now = datetime(2026, 10, 19, 14, 5, tzinfo=tz.UTC)
        html = render_page(
            "Factura=F-001%0ASerie+A&Cliente=Juan+P%C3%A9rez%0ALima&NotaP=Documento+no+fiscal",
            now=now,
        )

        self.assertIn('<p id="footer-company-info">F-001 - Juan Pérez</p>', html)
        self.assertIn('id="print-date"', html)
        self.assertIn("Documento no fiscal", html)

    def test_rendering_is_idempotent(self) -> None:
        now = datetime(2026, 10, 19, 14, 5, tzinfo=tz.UTC)
        query = FULL_QUERY + "&NotaP=copia"

        self.assertEqual(render_page(query, now=now), render_page(query, now=now))


if __name__ == "__main__":
    unittest.main()
