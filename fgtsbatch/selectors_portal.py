from __future__ import annotations

"""URLs, role names and locators for the FGTS Digital portal."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PortalSelectors:
    """Selector hints for the quick guide emission workflow.

    Role names are regular expression sources matched case-insensitively.
    The report button is located by aria-label first; the structural XPath is
    only used when neither label variant is visible.
    """

    services_url: str = "https://fgtsdigital.sistema.gov.br/portal/servicos"
    guide_page_url: str = (
        "https://fgtsdigital.sistema.gov.br/cobranca/#/gestao-guias/emissao-guia-rapida"
    )
    guide_page_pattern: str = "**/cobranca/#/gestao-guias/emissao-guia-rapida"

    switch_profile_button: str = r"Trocar Perfil"
    profile_modal: str = "lib-fgtsd-modal-alterar-perfil"
    invalid_id_message: str = ".invalid-feedback .message"
    invalid_id_text: str = r"CPF/CNPJ inv[aá]lido"
    profile_input: str = 'ng-select input[role="combobox"]'
    id_input: str = 'input[placeholder="Informe CNPJ ou CPF"]'
    select_button: str = r"^Selecionar$"

    period_select: str = "#selectCompetencia ng-select"
    period_value_label: str = ".ng-value-label"
    period_input: str = 'input[role="combobox"]'
    period_option: str = ".ng-dropdown-panel .ng-option"

    termination_debts_checkbox: str = 'input[name="carregarDebitoRescisorio"]'

    search_button: str = r"^Pesquisar$"
    emit_guide_button: str = r"Emitir guia"

    report_button_labels: Tuple[str, ...] = (
        "Imprimir relatório em PDF",
        "Imprimir relatorio em PDF",
    )
    report_button_xpath: str = (
        "xpath=/html/body/app-root/fgtsd-main-layout/div/br-main-layout/div/div/div/main"
        "/div[2]/app-emissao-guia-rapida-consignado/div/app-agrupamento-guia-rapida-consignado"
        "/div/div/div/div/div[3]/div/button[1]"
    )

    @property
    def report_button_css(self) -> str:
        return ", ".join(f'button[aria-label="{label}"]' for label in self.report_button_labels)


PORTAL_SELECTORS = PortalSelectors()

__all__ = ["PortalSelectors", "PORTAL_SELECTORS"]
