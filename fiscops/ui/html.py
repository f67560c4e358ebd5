"""Server-side HTML rendering of the dashboard view model"""

from html import escape
from typing import Any, Dict, List
from urllib.parse import quote

from fiscops.utils.formatting import fmt_billions, fmt_fcfa

PAGE_STYLE = """
body{font-family:system-ui,sans-serif;margin:0;background:#f8fafc;color:#0f172a}
.wrap{max-width:1200px;margin:0 auto;padding:16px}
.card{background:#fff;border:1px solid #e2e8f0;border-radius:12px;padding:16px;margin-top:12px}
.kpis{display:grid;grid-template-columns:repeat(3,1fr);gap:12px}
table{width:100%;border-collapse:collapse;font-size:14px}
th{color:#64748b;font-size:12px;text-align:left}td,th{padding:6px;border-bottom:1px solid #e2e8f0}
.num{text-align:right}.muted{color:#64748b;font-size:12px}.alert{color:#b91c1c}
form{display:inline;margin:0}button.link{background:none;border:0;padding:0;color:#1d4ed8;cursor:pointer;font:inherit}
nav button{margin-right:8px}nav button.active{font-weight:bold}
.toolbar form{margin-right:8px}textarea{width:100%}
"""


def _e(value: Any) -> str:
    return escape(str(value if value is not None else ""))


def _document(title: str, body: str) -> str:
    return (
        f'<!DOCTYPE html><html lang="fr"><head><meta charset="UTF-8">'
        f"<title>{_e(title)}</title><style>{PAGE_STYLE}</style></head>"
        f'<body><div class="wrap">{body}</div></body></html>'
    )


def _kpi(label: str, value: str) -> str:
    return f'<div class="card"><div class="muted">{_e(label)}</div><div><b>{_e(value)}</b></div></div>'


def _table(headers: List[str], rows: List[List[str]], numeric: set) -> str:
    head = "".join(f'<th class="{"num" if i in numeric else ""}">{_e(h)}</th>' for i, h in enumerate(headers))
    body = "".join(
        "<tr>" + "".join(f'<td class="{"num" if i in numeric else ""}">{cell}</td>' for i, cell in enumerate(row)) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _form(action: str, inner: str) -> str:
    return f'<form method="post" action="{_e(action)}">{inner}</form>'


def _select(name: str, options: List[str], selected: str) -> str:
    items = "".join(
        f'<option{" selected" if o == selected else ""} value="{_e(o)}">{_e(o)}</option>' for o in options
    )
    return f'<select name="{_e(name)}">{items}</select>'


def _open_button(row: Dict[str, Any]) -> str:
    """Case name that opens its detail panel"""
    return _form(
        "/ui/open",
        f'<button class="link" name="taxpayer_id" value="{_e(row["id"])}">{_e(row["name"])}</button>',
    )


def _toolbar(filters: Dict[str, Any]) -> str:
    return (
        '<div class="card toolbar">'
        + _form(
            "/ui/search",
            f'<input name="query" value="{_e(filters["query"])}" placeholder="Rechercher (nom, secteur, type)"> '
            "<button>Rechercher</button>",
        )
        + _form(
            "/ui/filters",
            _select("segment", filters["segment_options"], filters["segment"])
            + " "
            + _select("status", filters["status_options"], filters["status"])
            + " <button>Filtrer</button>",
        )
        + _form("/taxpayers/new", "<button>➕ Nouveau</button>")
        + _form("/sync", "<button>💾 Enregistrer</button>")
        + "</div>"
    )


def _pager(page: int, pages: int) -> str:
    return _form(
        "/ui/page",
        f'<button name="action" value="previous"{" disabled" if page <= 1 else ""}>◀</button> '
        f'<span class="muted">page {page}/{pages}</span> '
        f'<button name="action" value="next"{" disabled" if page >= pages else ""}>▶</button>',
    )


def _content(content: Dict[str, Any]) -> str:
    kind = content["kind"]

    if kind == "portefeuille":
        rows = [
            [
                _open_button(r), _e(r["sector"]), _e(r["segment"]), _e(fmt_fcfa(r["revenue"])),
                _e(fmt_fcfa(r["debt"])), f'{_e(r["age_days"])} j', f'{r["index"]} / 100', _e(r["status"]),
            ]
            for r in content["rows"]
        ]
        table = _table(
            ["Contribuable", "Secteur", "IFU", "CA", "Montant dû", "Ancienneté", "Indice", "Statut"],
            rows,
            {3, 4, 5, 6},
        )
        return (
            f'<div class="card"><b>Portefeuille</b> '
            f'<span class="muted">{content["total"]} dossiers</span>'
            f'{table}{_pager(content["page"], content["pages"])}</div>'
        )

    if kind == "ifu":
        rows = [
            [
                f'<b>{_e(r["segment"])}</b><div class="muted">{_e(r["label"])}</div>',
                str(r["dossiers"]),
                f'{_e(fmt_fcfa(r["debt"]))} <span class="muted">({r["pct_objective"]}%)</span>',
                str(r["critical_count"]),
            ]
            for r in content["rows"]
        ]
        return f'<div class="card"><b>IFU</b>{_table(["IFU", "Dossiers", "Dette", "Critiques"], rows, {1, 2, 3})}</div>'

    if kind == "segments":
        rows = [
            [
                f'<b>{_e(r["segment"])}</b><div class="muted">{_e(r["label"])}</div>',
                _e(fmt_fcfa(r["debt"])),
                _e(fmt_fcfa(r["reference"])),
                f'{r["pct_of_reference"]}%',
            ]
            for r in content["rows"]
        ]
        year = content["reference_year"]
        table = _table(["Segment", "Dette actuelle", f"Recouvré {year}", "Dette / réf."], rows, {1, 2, 3})
        split = (
            f'<div class="muted">Réf. {_e(year)} : {_e(fmt_fcfa(content["reference_total"]))} dont spontané '
            f'{_e(fmt_fcfa(content["spontaneous"]))} et AMR {_e(fmt_fcfa(content["enforced"]))}</div>'
        )
        return f'<div class="card"><b>Segments</b>{split}{table}</div>'

    if kind == "rapport":
        lines = "".join(f"<div>{_e(line)}</div>" for line in content["lines"])
        return f'<div class="card"><b>Rapport 1 page</b> <a href="/v1/report/pdf">Générer PDF</a>{lines}</div>'

    return f'<div class="card muted">{_e(content.get("message", ""))}</div>'


def _overlay(overlay: Dict[str, Any]) -> str:
    """Detail panel with the notes / segment / status edit form"""
    t = overlay["taxpayer"]
    edit_form = _form(
        f'/taxpayers/{quote(t["id"], safe="")}/edit',
        f'<p><textarea name="notes" rows="3">{_e(t["notes"])}</textarea></p>'
        f'<p><button>Enregistrer</button> '
        f'{_select("segment", overlay["segment_options"], t["segment"])} '
        f'{_select("status", overlay["status_options"], t["status"])}</p>',
    )
    return (
        f'<div class="card" id="dossier"><b>{_e(t["name"])}</b> '
        f'{_form("/ui/close", "<button>Fermer</button>")}'
        f'<div class="muted">{_e(t["sector"])} • {_e(t["company_type"])} • {_e(t["segment"])}</div>'
        f'<div class="kpis">{_kpi("CA", fmt_fcfa(t["revenue"]))}{_kpi("Montant dû", fmt_fcfa(t["debt"]))}'
        f'{_kpi("Ancienneté", str(t["age_days"]) + " jours")}</div>'
        f'<div>Indice de décision : <b>{overlay["index"]} / 100</b></div>'
        f'<div class="muted">Recommandation : {_e(overlay["recommendation"])} • '
        f'Contribution à l\'objectif : {overlay["pct_objective"]}%</div>'
        f'<div class="muted">Notes</div>{edit_form}</div>'
    )


def render_page(model: Dict[str, Any]) -> str:
    """Whole dashboard page from a projected view model"""
    header = model["header"]
    kpis = model["kpis"]
    priorities = model["priorities"]

    nav = _form(
        "/ui/view",
        "".join(
            f'<button class="{"active" if v["active"] else ""}" name="view" value="{_e(v["id"])}">{_e(v["label"])}</button>'
            for v in model["views"]
        ),
    )
    sync = model.get("sync") or {}
    sync_banner = ""
    if sync.get("failed"):
        sync_banner = f'<div class="card alert">Synchronisation échouée : {_e(sync.get("error") or "")}</div>'
    demo_banner = ""
    if header["data_source"] == "synthetic":
        demo_banner = '<div class="card alert">Données de démonstration (chargement distant impossible)</div>'

    priority_rows = [
        [_open_button(r), _e(r["segment"]), _e(fmt_fcfa(r["debt"])), f'{r["index"]} / 100']
        for r in priorities["rows"]
    ]

    body = (
        f'<div class="muted">▲ FiscOps</div><h2>Ce mois</h2>'
        f'<div class="muted">{_e(header["center_name"])} • {_e(header["period_label"])}</div>'
        f"<nav>{nav}</nav>{sync_banner}{demo_banner}"
        f'<div class="kpis">'
        f'{_kpi("Objectif annuel (" + fmt_billions(kpis["objective_annual"]) + ")", fmt_fcfa(kpis["objective_annual"]))}'
        f'{_kpi("Dette totale", fmt_fcfa(kpis["debt_total"]))}'
        f'{_kpi("Dettes critiques", str(kpis["critical_count"]))}</div>'
        f'<div class="card"><b>PRIORITÉS DU JOUR</b> '
        f'<span class="muted">Impact : +{_e(fmt_fcfa(priorities["impact"]))} ({priorities["impact_pct"]}%)</span>'
        f'<div class="muted">{len(priorities["rows"])} dossiers à traiter immédiatement</div>'
        f'{_table(["Contribuable", "IFU", "Dette", "Indice"], priority_rows, {2, 3})}</div>'
        f'{_toolbar(model["filters"])}{_content(model["content"])}'
    )
    if model.get("overlay"):
        body += _overlay(model["overlay"])

    return _document("FiscOps", body)


def render_login(message: str = "") -> str:
    """Sign-in form; message is shown inline under the buttons"""
    body = (
        '<div class="card" style="max-width:360px;margin:60px auto">'
        "<b>Connexion FiscOps</b>"
        '<form method="post" action="/login">'
        '<p><input name="email" placeholder="Email"></p>'
        '<p><input name="password" type="password" placeholder="Mot de passe"></p>'
        '<p><button name="intent" value="login">Se connecter</button> '
        '<button name="intent" value="signup">Créer un compte</button></p></form>'
        f'<div class="alert" id="lg_msg">{_e(message)}</div></div>'
    )
    return _document("Connexion FiscOps", body)
