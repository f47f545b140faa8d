from __future__ import annotations

from typing import Any, Dict, List


def make_resource(resource_id: int, url: str, **overrides: Any) -> Dict[str, Any]:
    resource = {
        "id": resource_id,
        "type": "reading",
        "title": f"Resource {resource_id}",
        "source": "Example",
        "url": url,
        "duration": "1 hour",
        "description": "Reading material",
        "completed": False,
    }
    resource.update(overrides)
    return resource


def make_plan_payload(urls_by_week: List[List[str]], topic: str = "Python Programming") -> Dict[str, Any]:
    weeks = []
    next_id = 1
    for index, urls in enumerate(urls_by_week, start=1):
        resources = []
        for url in urls:
            resources.append(make_resource(next_id, url))
            next_id += 1
        weeks.append({"weekNumber": index, "theme": f"Week {index} theme", "resources": resources})
    return {"topic": topic, "weeks": weeks}
