"""Shared test helpers: sample import documents and guide factories."""

import csv
import io

from httpx import AsyncClient

from flowguide.guides.schemas import CreateGuideRequest
from flowguide.guides.service import GuideService
from flowguide.importer.models import FlowBoxDraft, StepDraft

CSV_HEADER = ["Flow Name", "Flow Description", "Step Title", "Content"]

SAMPLE_CSV = (
    "Flow Name,Flow Description,Step Title,Content\n"
    "Setup,Intro text,Install SDK,Run npm install\n"
    "Setup,,Configure,\"Set API_KEY, then restart\"\n"
    "Deploy,Ship it,Build,npm run build\n"
)

SAMPLE_MARKDOWN = """# Onboarding

## Setup
*Get started quickly*

### Install SDK
Run npm install

### Configure
Set `API_KEY` in your environment.

- restart the dev server
- check the logs

## Deploy
### Build
npm run build
"""


def make_csv(rows: list[list[str]], header: list[str] | None = None) -> str:
    """Render rows as CSV text with correct quoting."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header or CSV_HEADER)
    writer.writerows(rows)
    return output.getvalue()


def make_flow(title: str = "Flow", n_steps: int = 2, description: str = "") -> FlowBoxDraft:
    """Unpositioned draft with steps titled "<title> step 1".."""
    return FlowBoxDraft(
        title=title,
        description=description,
        steps=[
            StepDraft(title=f"{title} step {i}", content=f"Content {i}")
            for i in range(1, n_steps + 1)
        ],
    )


async def create_guide(service: GuideService, title: str = "Test Guide") -> str:
    """Create a guide through the service and return its id."""
    guide = await service.create_guide(CreateGuideRequest(title=title))
    return guide.guide_id


async def create_test_guide(client: AsyncClient, title: str = "Test Guide") -> dict:
    """Create a guide via the API and return the response JSON."""
    resp = await client.post("/api/guides", json={"title": title})
    assert resp.status_code == 201
    return resp.json()
