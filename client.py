import requests


class ChartClient:
    """Simple REST client for the workout chart API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def import_csv(self, text: str) -> int:
        resp = requests.post(
            f"{self.base_url}/workouts/import",
            data=text.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["imported"]

    def exercises(self) -> list[dict]:
        resp = requests.get(f"{self.base_url}/exercises", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def series(self, exercise: str) -> list[dict]:
        resp = requests.get(
            f"{self.base_url}/exercises/{requests.utils.quote(exercise)}/series",
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def layout(self, exercise: str, width: int | None = None, height: int | None = None) -> dict:
        resp = requests.get(
            f"{self.base_url}/exercises/{requests.utils.quote(exercise)}/layout",
            params={"width": width, "height": height},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def chart_png(self, exercise: str, width: int | None = None, height: int | None = None) -> bytes:
        resp = requests.get(
            f"{self.base_url}/exercises/{requests.utils.quote(exercise)}/chart.png",
            params={"width": width, "height": height},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.content
