"""
EXPORT Module - Compile a finished session into a downloadable script

Produces:
- A JSON document with the show structure, persona roster and script
- A slugified filename for the download
- Plain "Speaker: text" rendering for the final review step
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from .models import DialogueLine, SessionState


def build_export(state: SessionState, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the export document for a session.

    Args:
        state: Session to export
        now: Timestamp to record (defaults to the current UTC time)

    Returns:
        {show: {...}, personas: [...], script: [...]}
    """
    generated_at = (now or datetime.now(timezone.utc)).isoformat()
    show = state.show

    return {
        "show": {
            "title": show.title,
            "generatedAt": generated_at,
            "host": state.host_name,
            "intro": show.intro,
            "topics": list(show.topics),
        },
        "personas": [
            {
                "name": p.name,
                "role": p.role,
                "style": p.speaking_style,
                "sflProfile": p.sfl_profile.model_dump(by_alias=True, mode="json") if p.sfl_profile else None,
            }
            for p in state.personas
        ],
        "script": [{"speaker": l.speaker_name, "text": l.line} for l in state.script],
    }


def export_filename(title: str) -> str:
    """'My Show!' -> 'my_show__script.json'; blank titles become 'podcast_script.json'."""
    slug = re.sub(r"[^a-z0-9]", "_", title.strip(), flags=re.IGNORECASE).lower() or "podcast"
    return f"{slug}_script.json"


def export_json(state: SessionState, now: Optional[datetime] = None) -> str:
    return json.dumps(build_export(state, now), indent=2, ensure_ascii=False)


def render_script_text(lines: Sequence[DialogueLine]) -> str:
    """Render the script as it appears on the final review screen."""
    return "\n\n".join(f"{l.speaker_name}: {l.line}" for l in lines)
