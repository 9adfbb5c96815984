# Loople application package
# Modules:
#   db.py            — Supabase/Postgres connection and query helpers
#   auth.py          — Session management and club role helpers
#   tenant.py        — Subdomain tenant resolution
#   mentions.py      — @mention segmentation (core logic) and mention records
#   notifications.py — In-app notifications
#   posts.py         — Newsfeed post and user shaping
#   usernames.py     — Username generation and validation
#   widgets.py       — Shared Streamlit widgets and in-session navigation
