from __future__ import annotations

from typing import List

import pandas as pd
import pytest

from core.data import FetchError, RecordStore, parse_rows

HEADER = [
    "ID", "Data", "Chave", "CodCliente", "CodProduto", "Cliente", "Produto", "Quantidade",
    "Embalagem", "ValorUnitario", "ValorTotal", "Rota", "CCOMSS", "ST", "VendaEfetivada",
    "Troca", "ValorTroca",
]


def sheet_row(id_, day, customer, product, qty, total, route, exchange="0"):
    return [id_, day, "K1", "C1", "P1", customer, product, qty, "CX", "1", total, route, "", "", "S", "", exchange]


SHEET_ROWS: List[List[str]] = [
    HEADER,
    sheet_row("1", "15/01/2024", "Mercado Azul", "Caixa Leite", "10", "1.000,00", "Rota 1"),
    sheet_row("2", "20/01/2024", "Mercado Azul", "TROCA Caixa Leite", "2", "50,00", "Rota 1", "50,00"),
    sheet_row("3", "05/02/2024", "Padaria Sol", "Pão de Forma", "5", "250,50", "Rota 2"),
    sheet_row("4", "10/02/2024", "Padaria Sol", "Tróca Pão", "1", "30,00", "", "30,00"),
    sheet_row("5", "12/03/2024", "Bar do Zé", "Caixa Leite", "4", "400,00", "Rota 2"),
    sheet_row("6", "03/03/2023", "Bar do Zé", "Refrigerante", "12", "120,00", "Rota 3"),
]


class FakeSource:
    def __init__(self, frames=None, error: str | None = None) -> None:
        self.frames = list(frames or [])
        self.error = error
        self.calls = 0

    def fetch_records(self) -> pd.DataFrame:
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return self.frames.pop(0) if len(self.frames) > 1 else self.frames[0]


@pytest.fixture
def records() -> pd.DataFrame:
    return parse_rows(SHEET_ROWS)


@pytest.fixture
def store(records) -> RecordStore:
    return RecordStore(FakeSource([records]), mutation_latency=0)
