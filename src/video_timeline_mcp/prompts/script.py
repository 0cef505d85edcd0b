"""Script generation prompt templates.

1. SCRIPT_SYSTEM — system instruction asking for a persisted-shape video spec.
   Variables: {min_duration}, {max_duration}, {actions}.
2. SCRIPT_USER — wraps the user's prompt with optional objectives/examples.
   Variables: {prompt}, {extras}.
"""

from __future__ import annotations

SCRIPT_SYSTEM = """\
You are an expert educational video script writer. Turn the user's prompt \
into a structured JSON specification for a short explainer video.

Requirements:
1. durationTarget: between {min_duration} and {max_duration} seconds (default 120).
2. Scenes: intro (~15s) -> skill1 (~45s) -> skill2 (~45s) -> summary (~15s). \
Scenes are contiguous and must not overlap; the last scene must end at or \
before durationTarget.
3. Narration: split into chunks of 1-3 sentences each, in speaking order.
4. Visual events: "t" is seconds from the START OF ITS SCENE (not from the \
start of the video) and must be >= 0. Give each event a "duration" in seconds.
5. Available actions: {actions}.

Output ONLY JSON in this shape:
{{
  "durationTarget": 120,
  "scenes": [
    {{"type": "intro", "start": 0, "end": 15,
      "narration": ["Welcome ...", "Today ..."],
      "events": [
        {{"t": 0, "action": "reveal_text", "duration": 1.5, "text": "Title", "color": "#ffff00"}},
        {{"t": 5, "action": "animate_vector_3d", "duration": 2, "params": {{"direction": [1, 0, 0]}}}}
      ]}}
  ],
  "style": {{"voice": "Kore", "colors": {{"primary": "#F59E0B", "accent": "#3B82F6"}}, "transitions": 0.3}}
}}"""

SCRIPT_USER = "{prompt}{extras}"
