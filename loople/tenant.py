"""
loople/tenant.py
Tenant (club) resolution from the request host.

Each club is served from its own subdomain.  The resolved TenantContext is
passed explicitly to the code that needs it; nothing here reads or writes
session state.
"""

from dataclasses import dataclass

import streamlit as st

from loople.db import query_df

_VERCEL_SUFFIX = ".vercel.app"


@dataclass(frozen=True)
class TenantContext:
    subdomain: str | None = None
    club_slug: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.club_slug is not None


def _tenant(sub: str) -> TenantContext:
    return TenantContext(subdomain=sub, club_slug=sub)


def resolve_tenant_from_host(host: str | None) -> TenantContext:
    """
    Resolve the tenant subdomain from a Host header value.

    Supported shapes:
      tenant.localhost[:port]          → 'tenant'
      <branch>-<hash>-<sub>.vercel.app → '<sub>'  (last dash-separated token)
      sub.domain.tld                   → 'sub'
    Anything else (bare localhost, apex domains, empty) resolves to an empty
    TenantContext.
    """
    if not host:
        return TenantContext()

    host = host.strip().lower()
    hostname = host.split(":", 1)[0]

    if hostname.endswith(".localhost"):
        sub = hostname.split(".")[0]
        return _tenant(sub) if sub else TenantContext()

    vercel_idx = hostname.find(_VERCEL_SUFFIX)
    if vercel_idx > 0:
        left = hostname[:vercel_idx]
        return _tenant(left.split("-")[-1])

    labels = hostname.split(".")
    if len(labels) >= 3 and labels[0]:
        return _tenant(labels[0])

    return TenantContext()


def current_tenant() -> TenantContext:
    """Resolve the tenant for the current Streamlit request."""
    return resolve_tenant_from_host(st.context.headers.get("host"))


@st.cache_data(ttl=300, show_spinner=False)
def get_club_for_tenant(tenant: TenantContext) -> dict | None:
    """
    Return the clubs row for a tenant, or None when it is unresolved or no
    club uses that slug.
    """
    if not tenant.is_resolved:
        return None
    df = query_df(
        "SELECT id, name, slug, owner_id FROM clubs WHERE slug = %s",
        (tenant.club_slug,),
    )
    if df.empty:
        return None
    return df.iloc[0].to_dict()
