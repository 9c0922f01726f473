from scrapers.jsonld import JsonLdScraper


class SFLibraryScraper(JsonLdScraper):
    name = "sf-library"
    url = "https://sfpl.org/events"


class FunCheapSFScraper(JsonLdScraper):
    name = "funcheapsf"
    url = "https://sf.funcheap.com/city/san-francisco"


class ExploratoriumScraper(JsonLdScraper):
    name = "exploratorium"
    url = "https://www.exploratorium.edu/visit/calendar"


class CalAcademyScraper(JsonLdScraper):
    name = "cal-academy"
    url = "https://www.calacademy.org/daily-calendar"


class SFRecParksScraper(JsonLdScraper):
    name = "sf-recparks"
    url = "https://sfrecpark.org/calendar.aspx"


ALL_SCRAPERS = [
    SFLibraryScraper,
    FunCheapSFScraper,
    ExploratoriumScraper,
    CalAcademyScraper,
    SFRecParksScraper,
]
