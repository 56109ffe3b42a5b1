from __future__ import annotations

import unicodedata
from collections.abc import Mapping
from types import MappingProxyType

from ..models.roles import CanonicalRole, placeholder_header

"""Multilingual header alias table and header normalization.

Supplier exports title the same column in many ways ("Codice a barre",
"EAN", "Strichcode", "条码" ...). Each raw header cell is folded into a token
(``normalize_token``) and looked up in a precomputed ``token -> role`` map.

The alias table is built once at import time and never mutated. When two
roles list patterns with the same token, the role declared first in
``CanonicalRole`` keeps it.
"""

__all__ = [
    "ALIAS_TABLE",
    "SUMMARY_TOKENS",
    "RETAIL_PRICE_KEYWORDS",
    "DISCOUNTED_PRICE_KEYWORDS",
    "normalize_token",
    "normalize_header_cell",
    "lookup_role",
    "is_summary_label",
]

R = CanonicalRole

_ALIASES: dict[CanonicalRole, tuple[str, ...]] = {
    R.BARCODE: (
        "barcode", "bar code", "codice a barre", "codice barre", "cod barre", "codbarre",
        "ean", "ean13", "ean 13", "ean8", "ean code", "codice ean", "upc", "gtin", "gtin13",
        "codigo de barras", "código de barras", "codigo barras", "code barre", "code-barres",
        "code ean", "strichcode", "barcode nr", "streepjescode", "código de barra",
        "штрихкод", "штрих код", "штрих-код", "条码", "条形码", "商品条码",
    ),
    R.PRODUCT_NAME: (
        "productname", "product name", "product", "name", "description", "item description",
        "item name", "article", "descrizione", "descrizione articolo", "nome", "nome prodotto",
        "prodotto", "articolo", "denominazione", "descripcion", "descripción", "nombre",
        "producto", "nombre del producto", "désignation", "designation", "libellé", "libelle",
        "nom du produit", "produit", "bezeichnung", "artikelbezeichnung", "produktname",
        "beschreibung", "artikel", "omschrijving", "productnaam", "descrição", "nome do produto",
        "наименование", "название", "товар", "品名", "商品名称", "产品名称", "名称", "描述",
    ),
    R.SECOND_PRODUCT_NAME: (
        "secondproductname", "second product name", "second name", "secondary name",
        "product name 2", "description 2", "secondo nome", "descrizione 2",
        "descrizione aggiuntiva", "descrizione estesa", "nome 2", "nombre 2",
        "descripcion 2", "descripción 2", "designation 2", "désignation 2",
        "bezeichnung 2", "zusatzbezeichnung", "英文名称", "英文品名", "第二名称",
    ),
    R.ITEM_NUMBER: (
        "itemnumber", "item number", "item no", "item nr", "item code", "item", "sku",
        "article number", "article no", "art no", "art nr", "code", "product code",
        "codice", "codice articolo", "cod articolo", "cod art", "cod", "articolo nr",
        "rif", "riferimento", "referencia", "ref", "reference", "référence", "codigo",
        "código", "codigo articulo", "código artículo", "artikelnummer", "artikel nr",
        "artikel-nr", "art-nr", "bestellnummer", "artikelnr", "артикул", "код",
        "货号", "编号", "商品编号", "款号",
    ),
    R.QUANTITY: (
        "quantity", "qty", "qta", "qtà", "q.tà", "quantita", "quantità", "pezzi", "pz",
        "cantidad", "cant", "unidades", "quantité", "qte", "qté", "menge", "anzahl", "stück",
        "stk", "hoeveelheid", "aantal", "quantidade", "qtd", "pcs", "pieces", "units",
        "stockquantity", "stock quantity", "количество", "кол-во", "数量", "件数",
    ),
    R.PURCHASE_PRICE: (
        "purchaseprice", "purchase price", "price", "unit price", "cost", "cost price",
        "net price", "prezzo", "prezzo acquisto", "prezzo d'acquisto", "prezzo unitario",
        "prezzo netto", "costo", "precio", "precio compra", "precio de compra",
        "precio unitario", "coste", "prix", "prix d'achat", "prix unitaire", "prix achat",
        "preis", "einkaufspreis", "ek preis", "ek-preis", "stückpreis", "einzelpreis",
        "prijs", "inkoopprijs", "preço", "preço de compra", "preço unitário", "цена",
        "закупочная цена", "单价", "进价", "价格", "采购价",
    ),
    R.TOTAL_PRICE: (
        "totalprice", "total price", "total", "amount", "line total", "importo",
        "importo totale", "totale", "prezzo totale", "totale riga", "importe",
        "importe total", "precio total", "montant", "montant total", "prix total",
        "gesamtpreis", "gesamt", "betrag", "totaalprijs", "bedrag", "valor total",
        "сумма", "итого", "总价", "金额", "合计金额",
    ),
    R.RETAIL_PRICE: (
        "retailprice", "retail price", "retail", "sale price", "selling price", "msrp",
        "rrp", "list price", "prezzo vendita", "prezzo di vendita", "prezzo al pubblico",
        "prezzo pubblico", "prezzo listino", "listino", "pvp", "precio venta",
        "precio de venta", "precio venta publico", "prix de vente", "prix public",
        "verkaufspreis", "vk preis", "vk-preis", "uvp", "verkoopprijs", "preço de venda",
        "розничная цена", "零售价", "售价", "建议零售价",
    ),
    R.DISCOUNTED_PRICE: (
        "discountedprice", "discounted price", "offer price", "promo price",
        "prezzo scontato", "prezzo promo", "prezzo offerta", "precio oferta",
        "precio con descuento", "prix remisé", "prix promo", "aktionspreis",
        "rabattpreis", "preço promocional", "цена со скидкой", "折后价", "促销价",
    ),
    R.DISCOUNT: (
        "discount", "disc", "discount %", "sconto", "sconto %", "sc", "descuento", "dto",
        "remise", "rabatt", "korting", "desconto", "скидка", "折扣",
    ),
    R.SUPPLIER: (
        "supplier", "vendor", "manufacturer", "brand", "fornitore", "produttore", "marca",
        "proveedor", "fabricante", "fournisseur", "fabricant", "marque", "lieferant",
        "hersteller", "marke", "leverancier", "fornecedor", "поставщик", "производитель",
        "供应商", "厂家", "品牌",
    ),
    R.CATEGORY: (
        "category", "group", "family", "department", "categoria", "reparto", "famiglia",
        "gruppo", "categoría", "familia", "grupo", "catégorie", "famille", "rayon",
        "kategorie", "warengruppe", "gruppe", "categorie", "категория", "группа",
        "类别", "分类", "品类",
    ),
    R.ROW_NUMBER: (
        "rownumber", "row number", "row", "no", "nr", "n", "#", "pos", "position", "line",
        "riga", "numero riga", "n riga", "progressivo", "fila", "ligne", "zeile",
        "regel", "№", "序号", "行号",
    ),
    R.REAL_QUANTITY: (
        "realquantity", "real quantity", "counted quantity", "actual quantity",
        "quantità reale", "quantita reale", "qta reale", "cantidad real", "quantité réelle",
        "istmenge", "фактическое количество", "实际数量", "实盘数量",
    ),
    R.OLD_PURCHASE_PRICE: (
        "oldpurchaseprice", "old purchase price", "previous purchase price", "old price",
        "vecchio prezzo acquisto", "prezzo acquisto precedente", "precio compra anterior",
        "ancien prix d'achat", "alter einkaufspreis", "旧进价",
    ),
    R.OLD_RETAIL_PRICE: (
        "oldretailprice", "old retail price", "previous retail price",
        "vecchio prezzo vendita", "prezzo vendita precedente", "precio venta anterior",
        "ancien prix de vente", "alter verkaufspreis", "旧售价",
    ),
}

ALIAS_TABLE: Mapping[CanonicalRole, tuple[str, ...]] = MappingProxyType(_ALIASES)

# Leading tokens of aggregate rows, compared against normalized cell text.
SUMMARY_TOKENS: tuple[str, ...] = (
    "total", "totale", "totali", "subtotal", "subtotale", "sum", "somma", "summe",
    "gesamt", "zwischensumme", "endsumme", "totaal", "subtotaal", "suma", "importetotal",
    "montanttotal", "grandtotal", "итого", "всего", "合计", "总计", "小计",
)

# Substrings of an already normalized header that hint at the price flavour.
DISCOUNTED_PRICE_KEYWORDS: tuple[str, ...] = (
    "scont", "discount", "promo", "offert", "offer", "saldo", "rabatt",
    "aktion", "descuento", "oferta", "remise", "korting", "desconto", "скидк", "折",
)
RETAIL_PRICE_KEYWORDS: tuple[str, ...] = (
    "vendita", "retail", "pubblico", "listino", "pvp", "msrp", "rrp", "vente",
    "verkauf", "venta", "uvp", "verkoop", "venda", "selling", "розн", "零售", "售价",
)


def _fold_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", stripped)


def normalize_token(text: str) -> str:
    """Fold a raw header (or cell) into a comparison token.

    Diacritics are removed, spaces and underscores dropped, everything but
    Unicode letters and digits discarded, and the result lowercased.
    Applying it twice gives the same result.
    """
    folded = _fold_diacritics(text).strip()
    folded = folded.replace(" ", "").replace("_", "").lower()
    return "".join(ch for ch in folded if ch.isalnum())


def _build_lookup() -> Mapping[str, CanonicalRole]:
    lookup: dict[str, CanonicalRole] = {}
    for role in CanonicalRole:
        patterns = (role.value,) + _ALIASES.get(role, ())
        for pattern in patterns:
            token = normalize_token(pattern)
            if token:
                lookup.setdefault(token, role)
    return MappingProxyType(lookup)


_LOOKUP = _build_lookup()


def lookup_role(text: str) -> CanonicalRole | None:
    return _LOOKUP.get(normalize_token(text))


def normalize_header_cell(raw: str, index: int) -> str:
    """Map one raw header cell to a role value, a passthrough token or ``colN``."""
    token = normalize_token(raw)
    if not token:
        return placeholder_header(index)
    role = _LOOKUP.get(token)
    if role is not None:
        return role.value
    return token


def is_summary_label(text: str) -> bool:
    token = normalize_token(text)
    return bool(token) and token.startswith(SUMMARY_TOKENS)
