import streamlit as st
import os
import logging

logger = logging.getLogger(__name__)

# Section mapping for keys that live under a [section] in secrets.toml
SECTION_KEYS = {
    "SUPABASE_URL": ("supabase", "url"),
    "SUPABASE_KEY": ("supabase", "key"),
    "SUPABASE_BUCKET": ("supabase", "bucket"),
}

def get_secret(key_name, default=None):
    """
    Smart Secret Fetcher.
    1. Checks os.environ (Production) - supporting both literal and UPPER_UNDERSCORE formats.
    2. Checks st.secrets (QA/Local).
    Falls back to `default` when nothing is configured.
    """

    # --- 1. Try Environment Variable (Production Priority) ---
    # A. Exact Match (e.g. "supabase.bucket")
    env_val = os.environ.get(key_name)
    if env_val: return env_val

    # B. Standard Env Var Format (e.g. "supabase.bucket" -> "SUPABASE_BUCKET")
    alt_key = key_name.upper().replace(".", "_")
    env_val = os.environ.get(alt_key)
    if env_val: return env_val

    # --- 2. Try Streamlit Secrets (QA/Local) ---
    try:
        # A. Direct Lookup
        if key_name in st.secrets:
            return st.secrets[key_name]

        # B. Section Mapping
        if alt_key in SECTION_KEYS:
            section, key = SECTION_KEYS[alt_key]
            if section in st.secrets and key in st.secrets[section]:
                return st.secrets[section][key]

        # C. Dot Notation (e.g. "supabase.url")
        if "." in key_name:
            section, key = key_name.split(".", 1)
            if section in st.secrets:
                value = st.secrets[section].get(key)
                if value: return value

    except FileNotFoundError:
        # No secrets.toml at all (plain env-var deployments)
        logger.debug(f"No secrets file while looking up {key_name}")

    return default
