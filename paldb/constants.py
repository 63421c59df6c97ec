BASE = "https://paldb.cc"
CDN_BASE = "https://cdn.paldb.cc"
LOCALE = "en"

ASSET_PREFIXES = ["/image/", "/cache/", "/img/"]

PAL_LIST_URL = BASE + "/" + LOCALE + "/Pals"
BREED_URL = BASE + "/" + LOCALE + "/Breed"
YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/%s/maxresdefault.jpg"

HTML_HEADERS = {
    "Accept": "text/html",
    "Accept-Language": "en-US,en;q=0.9",
}
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; paldb-parser/0.1)"
USER_AGENT_ENV = "PALDB_USER_AGENT"

PAGE_TTL = 6 * 60 * 60

TRIBE_BOSS = "Tribe Boss"

WORK_SUITABILITY_NAMES = [
    "handiwork", "transporting", "farming", "gathering", "mining",
    "planting", "lumbering", "medicine", "kindling", "cooling",
    "watering", "generating",
]

ACTIVE_SKILL_NEXT_HEADINGS = [
    "Passive Skills", "Possible Drops", "Tribes", "Spawner",
    "Work Suitability", "Summary",
]

WORK_INGREDIENT_SLUG = "__work__"
WORK_ICON_MARKER = "T_icon_status_05"
