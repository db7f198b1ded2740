"""Sondes de santé Supabase: DNS de l'hôte puis lecture d'une ligne par table du flux de commande."""
from typing import Any, Dict
from urllib.parse import urlparse
import socket

from marketplace import config
import marketplace.infra.supabase_client as supabase_client

HEALTH_TABLES = ("shopping_cart", "orders", "order_items", "payment_reconciliations")

def _probe_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def _dns_check(hostname: str) -> Dict[str, Any]:
    try:
        socket.getaddrinfo(hostname, 443)
        return {"dns_ok": True, "dns_error": None}
    except OSError as e:
        return {"dns_ok": False, "dns_error": str(e)}

def health_supabase_info() -> Dict[str, Any]:
    hostname = urlparse(config.SUPABASE_URL).hostname if config.SUPABASE_URL else None
    info: Dict[str, Any] = {
        "supabase_url": config.SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": None,
        "dns_error": None,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    if hostname:
        info.update(_dns_check(hostname))
    try:
        client = supabase_client.get_supabase()
        info["tables"] = {name: _probe_table(client, name) for name in HEALTH_TABLES}
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info
