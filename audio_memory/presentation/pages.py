"""Server-rendered HTML pages.

Each ``render_*`` function returns a complete document. Dynamic values are
escaped with :func:`html.escape` for markup and :func:`_js` for inline scripts.
"""

from __future__ import annotations

import json
from html import escape
from typing import Any

from audio_memory.config.settings import settings
from audio_memory.pipelines.audio import (
    ACCEPTED_CONTENT_TYPES,
    MAX_UPLOAD_BYTES,
    PlayerSnapshot,
)
from audio_memory.pipelines.audio.playback import RING_CIRCUMFERENCE, RING_RADIUS
from audio_memory.services.qr_images import code_url
from audio_memory.views import CodeListResponse, CodeSummary

_STYLE = """
body{margin:0;font-family:system-ui,sans-serif;background:#f6f5f2;color:#1c1b19}
main{min-height:100vh;display:flex;align-items:center;justify-content:center;padding:1rem}
.card{background:#fff;border:1px solid #e4e2dc;border-radius:1rem;padding:2rem;width:100%;max-width:28rem;box-shadow:0 8px 24px rgba(0,0,0,.06)}
.wide{max-width:56rem}
h1,h2{margin-top:0}
.muted{color:#6d6a63;font-size:.9rem}
.error{color:#b42318;font-size:.9rem}
button,.button{display:inline-block;padding:.7rem 1rem;border-radius:.7rem;border:0;background:#1c1b19;color:#fff;font-weight:600;cursor:pointer;text-decoration:none}
button.secondary,.button.secondary{background:#ecebe6;color:#1c1b19}
input[type=email],input[type=number]{width:100%;box-sizing:border-box;padding:.7rem;border:1px solid #d6d3cb;border-radius:.7rem;margin-bottom:.8rem}
table{width:100%;border-collapse:collapse;font-size:.9rem}
td,th{padding:.5rem;border-bottom:1px solid #eee;text-align:left}
.hidden{display:none}
.tabs{display:flex;gap:.5rem;margin-bottom:1rem}
.ring{display:block;margin:0 auto 1rem}
"""


def _js(value: Any) -> str:
    """Serialize ``value`` for safe embedding inside a ``<script>`` block."""

    return json.dumps(value).replace("</", "<\\/")


def _page(title: str, body: str, script: str = "", *, wide: bool = False) -> str:
    card_class = "card wide" if wide else "card"
    script_block = f"<script>{script}</script>" if script else ""
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{escape(title)} · {escape(settings.app_name)}</title>"
        f"<style>{_STYLE}</style></head>"
        f'<body><main><div class="{card_class}">{body}</div></main>'
        f"{script_block}</body></html>"
    )


_MAGIC_LINK_SCRIPT = """
const form = document.getElementById("magic-link-form");
form.addEventListener("submit", async (event) => {
  event.preventDefault();
  const email = form.elements.email.value;
  const error = document.getElementById("magic-link-error");
  error.textContent = "";
  const response = await fetch("/auth/magic-link", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify({email, next: NEXT_PATH}),
  });
  if (response.ok) {
    form.classList.add("hidden");
    document.getElementById("magic-link-email").textContent = email;
    document.getElementById("magic-link-sent").classList.remove("hidden");
  } else {
    const body = await response.json().catch(() => ({}));
    error.textContent = body.detail || "Could not send the sign-in link.";
  }
});
"""


def _magic_link_form(next_path: str, placeholder: str, sent_hint: str) -> tuple[str, str]:
    body = (
        '<form id="magic-link-form">'
        f'<input type="email" name="email" required placeholder="{escape(placeholder)}">'
        "<button type=\"submit\">Send Magic Link</button></form>"
        '<div id="magic-link-sent" class="hidden">'
        "<p><strong>Check your email!</strong></p>"
        '<p class="muted">We sent a login link to <strong id="magic-link-email"></strong>.'
        f" {escape(sent_hint)}</p></div>"
        '<p id="magic-link-error" class="error"></p>'
    )
    script = f"const NEXT_PATH = {_js(next_path)};" + _MAGIC_LINK_SCRIPT
    return body, script


def render_landing() -> str:
    body = (
        f"<h1>{escape(settings.app_name)}</h1>"
        '<p class="muted">Attach audio memories to physical objects using QR codes. '
        "Scan a QR code to listen or record a memory.</p>"
    )
    return _page(settings.app_name, body)


def render_not_found() -> str:
    body = (
        "<h1>QR Code Not Found</h1>"
        '<p class="muted">This QR code doesn&#x27;t exist or has been removed.</p>'
    )
    return _page("QR Code Not Found", body)


def render_admin_login() -> str:
    form, script = _magic_link_form("/admin", "admin@email.com", "")
    body = (
        "<h1>Admin Login</h1>"
        '<p class="muted">Sign in to manage QR codes</p>'
        f"{form}"
    )
    return _page("Admin Login", body, script)


_DASHBOARD_SCRIPT = """
const generate = document.getElementById("generate-form");
generate.addEventListener("submit", async (event) => {
  event.preventDefault();
  const error = document.getElementById("generate-error");
  error.textContent = "";
  const count = parseInt(generate.elements.count.value, 10);
  const response = await fetch("/admin/codes", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify({count}),
  });
  if (response.ok) {
    window.location.reload();
  } else {
    const body = await response.json().catch(() => ({}));
    error.textContent = typeof body.detail === "string" ? body.detail : "Failed to generate.";
  }
});
document.getElementById("sign-out").addEventListener("click", async () => {
  await fetch("/auth/sign-out", {method: "POST"});
  window.location.href = "/admin/login";
});
"""


def _code_row(code: CodeSummary, origin: str) -> str:
    url = code_url(code.token, origin)
    token = escape(code.token)
    return (
        "<tr>"
        f'<td><a href="{escape(url)}">{token}</a></td>'
        f"<td>{code.created_at.date().isoformat()}</td>"
        f"<td>{'Yes' if code.has_audio else 'No'}</td>"
        f'<td><a href="/admin/codes/{token}/qr.png">QR image</a></td>'
        "</tr>"
    )


def render_dashboard(listing: CodeListResponse, user_email: str, origin: str) -> str:
    rows = "".join(_code_row(code, origin) for code in listing.codes)
    if not rows:
        rows = '<tr><td colspan="4" class="muted">No QR codes yet.</td></tr>'
    body = (
        "<h1>QR Codes</h1>"
        f'<p class="muted">Signed in as {escape(user_email)} '
        '<button id="sign-out" class="secondary" type="button">Sign out</button></p>'
        f"<p><strong>{listing.total}</strong> codes, "
        f"<strong>{listing.with_audio}</strong> with audio</p>"
        '<form id="generate-form">'
        '<input type="number" name="count" min="1" max="500" value="10">'
        '<button type="submit">Generate</button> '
        '<a class="button secondary" href="/admin/codes/export.csv">Export CSV</a>'
        "</form>"
        '<p id="generate-error" class="error"></p>'
        "<table><thead><tr><th>Code</th><th>Created</th><th>Audio</th><th></th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )
    return _page("Admin", body, _DASHBOARD_SCRIPT, wide=True)


_PLAYER_SCRIPT = """
const audio = document.getElementById("player-audio");
const toggle = document.getElementById("player-toggle");
const seek = document.getElementById("player-seek");
const volume = document.getElementById("player-volume");
const mute = document.getElementById("player-mute");
const ring = document.getElementById("player-ring");
const elapsed = document.getElementById("player-elapsed");
const total = document.getElementById("player-duration");

function clock(seconds) {
  if (!isFinite(seconds) || seconds < 0) return "0:00";
  const whole = Math.floor(seconds);
  return Math.floor(whole / 60) + ":" + String(whole % 60).padStart(2, "0");
}
let duration = 0;
function render() {
  const progress = duration > 0 ? audio.currentTime / duration : 0;
  ring.style.strokeDashoffset = CIRCUMFERENCE * (1 - progress);
  seek.max = duration;
  seek.value = audio.currentTime;
  elapsed.textContent = clock(audio.currentTime);
  total.textContent = clock(duration);
  toggle.textContent = audio.paused ? "Play" : "Pause";
  mute.textContent = audio.muted ? "Unmute" : "Mute";
}
function updateDuration() {
  if (audio.duration && isFinite(audio.duration)) duration = audio.duration;
  render();
}
audio.addEventListener("timeupdate", render);
audio.addEventListener("loadedmetadata", updateDuration);
audio.addEventListener("durationchange", updateDuration);
audio.addEventListener("canplay", updateDuration);
audio.addEventListener("ended", render);
toggle.addEventListener("click", async () => {
  if (audio.paused) { await audio.play(); } else { audio.pause(); }
  render();
});
seek.addEventListener("input", () => { audio.currentTime = parseFloat(seek.value); render(); });
volume.addEventListener("input", () => {
  const value = Math.min(Math.max(parseFloat(volume.value), 0), 1);
  audio.volume = value;
  if (value > 0 && audio.muted) audio.muted = false;
  render();
});
mute.addEventListener("click", () => { audio.muted = !audio.muted; render(); });
"""


def render_player(snapshot: PlayerSnapshot) -> str:
    audio_url = escape(snapshot.audio_url)
    body = (
        "<h2>Audio Memory</h2>"
        f'<audio id="player-audio" src="{audio_url}" preload="metadata"></audio>'
        f'<svg class="ring" width="200" height="200" viewBox="0 0 200 200">'
        f'<circle cx="100" cy="100" r="{RING_RADIUS}" fill="none" stroke="#ecebe6" stroke-width="8"/>'
        f'<circle id="player-ring" cx="100" cy="100" r="{RING_RADIUS}" fill="none" '
        f'stroke="#1c1b19" stroke-width="8" stroke-dasharray="{RING_CIRCUMFERENCE:.3f}" '
        f'stroke-dashoffset="{snapshot.ring_offset:.3f}" transform="rotate(-90 100 100)"/>'
        "</svg>"
        f'<p><button id="player-toggle" type="button">{"Pause" if snapshot.is_playing else "Play"}</button> '
        f'<span id="player-elapsed">{escape(snapshot.elapsed_label)}</span> / '
        f'<span id="player-duration">{escape(snapshot.duration_label)}</span></p>'
        f'<input id="player-seek" type="range" min="0" step="0.1" '
        f'max="{snapshot.duration}" value="{snapshot.current_time}">'
        f'<p><button id="player-mute" class="secondary" type="button">'
        f'{"Unmute" if snapshot.muted else "Mute"}</button> '
        f'<input id="player-volume" type="range" min="0" max="1" step="0.05" value="{snapshot.volume}"></p>'
    )
    script = f"const CIRCUMFERENCE = {RING_CIRCUMFERENCE!r};" + _PLAYER_SCRIPT
    return _page("Audio Memory", body, script)


def render_sign_in(token: str) -> str:
    form, script = _magic_link_form(
        f"/qr/{token}", "your@email.com", "Click it to continue."
    )
    body = (
        "<h2>Add an Audio Memory</h2>"
        '<p class="muted">Sign in to upload or record audio for this QR code</p>'
        f"{form}"
    )
    return _page("Add an Audio Memory", body, script)


_UPLOADER_SCRIPT = """
const error = document.getElementById("uploader-error");
const uploadPanel = document.getElementById("upload-panel");
const recordPanel = document.getElementById("record-panel");
document.getElementById("mode-upload").addEventListener("click", () => {
  uploadPanel.classList.remove("hidden"); recordPanel.classList.add("hidden");
});
document.getElementById("mode-record").addEventListener("click", () => {
  recordPanel.classList.remove("hidden"); uploadPanel.classList.add("hidden");
});

const fileInput = document.getElementById("upload-file");
const uploadStatus = document.getElementById("upload-status");
fileInput.addEventListener("change", async () => {
  const file = fileInput.files[0];
  if (!file) return;
  error.textContent = "";
  if (!ACCEPTED.includes(file.type)) {
    error.textContent = "Please upload an MP3, WAV, M4A, or WebM audio file.";
    return;
  }
  if (file.size > MAX_BYTES) {
    error.textContent = "File size must be under 10MB.";
    return;
  }
  uploadStatus.textContent = "Uploading...";
  const form = new FormData();
  form.append("audio_file", file);
  const response = await fetch(ATTACH_URL, {method: "POST", body: form});
  if (response.ok) {
    window.location.reload();
    return;
  }
  const body = await response.json().catch(() => ({}));
  error.textContent = body.detail || "Upload failed.";
  uploadStatus.textContent = "Tap to select an audio file";
});

const scheme = window.location.protocol === "https:" ? "wss://" : "ws://";
const socket = new WebSocket(scheme + window.location.host + RECORD_PATH);
const startButton = document.getElementById("record-start");
const stopButton = document.getElementById("record-stop");
const review = document.getElementById("record-review");
const preview = document.getElementById("record-preview");
const timer = document.getElementById("record-timer");
let recorder = null;

function show(state) {
  startButton.classList.toggle("hidden", state !== "idle");
  stopButton.classList.toggle("hidden", state !== "recording");
  review.classList.toggle("hidden", state !== "reviewing" && state !== "uploading");
  document.getElementById("record-save").disabled = state === "uploading";
  document.getElementById("record-save").textContent = state === "uploading" ? "Saving..." : "Save";
}
socket.addEventListener("message", (message) => {
  const event = JSON.parse(message.data);
  timer.textContent = event.display;
  if (event.type === "saved") { window.location.reload(); return; }
  if (event.type === "error") { error.textContent = event.detail; }
  if (event.preview_url) { preview.src = event.preview_url; }
  show(event.state);
});

startButton.addEventListener("click", async () => {
  error.textContent = "";
  let stream = null;
  try {
    stream = await navigator.mediaDevices.getUserMedia({audio: true});
  } catch (err) {
    socket.send(JSON.stringify({action: "start", permission: "denied"}));
    return;
  }
  socket.send(JSON.stringify({action: "start", permission: "granted"}));
  recorder = new MediaRecorder(stream, {mimeType: "audio/webm"});
  recorder.addEventListener("dataavailable", (event) => {
    if (event.data.size > 0) socket.send(event.data);
  });
  recorder.addEventListener("stop", () => {
    stream.getTracks().forEach((track) => track.stop());
    socket.send(JSON.stringify({action: "stop"}));
  });
  recorder.start(250);
});
stopButton.addEventListener("click", () => { if (recorder) recorder.stop(); });
document.getElementById("record-discard").addEventListener("click", () => {
  preview.removeAttribute("src");
  socket.send(JSON.stringify({action: "discard"}));
});
document.getElementById("record-save").addEventListener("click", () => {
  socket.send(JSON.stringify({action: "save"}));
});
"""


def render_uploader(token: str, user_email: str) -> str:
    accept = ",".join(sorted(ACCEPTED_CONTENT_TYPES))
    body = (
        "<h2>Add an Audio Memory</h2>"
        '<p class="muted">Upload a file or record directly</p>'
        f'<p class="muted">Signed in as {escape(user_email)}</p>'
        '<div class="tabs">'
        '<button id="mode-upload" class="secondary" type="button">Upload File</button>'
        '<button id="mode-record" class="secondary" type="button">Record Audio</button>'
        "</div>"
        '<div id="upload-panel"><label>'
        '<p id="upload-status">Tap to select an audio file</p>'
        '<p class="muted">MP3, WAV, M4A, WebM (max 10MB)</p>'
        f'<input id="upload-file" type="file" accept="{escape(accept)}">'
        "</label></div>"
        '<div id="record-panel" class="hidden">'
        '<p id="record-timer">0:00</p>'
        '<button id="record-start" type="button">Start Recording</button>'
        '<button id="record-stop" class="hidden" type="button">Stop</button>'
        '<div id="record-review" class="hidden">'
        '<audio id="record-preview" controls></audio>'
        '<p><button id="record-discard" class="secondary" type="button">Discard</button> '
        '<button id="record-save" type="button">Save</button></p>'
        "</div></div>"
        '<p id="uploader-error" class="error"></p>'
    )
    script = (
        f"const ACCEPTED = {_js(sorted(ACCEPTED_CONTENT_TYPES))};"
        f"const MAX_BYTES = {MAX_UPLOAD_BYTES};"
        f"const ATTACH_URL = {_js(f'/qr/{token}/attachments')};"
        f"const RECORD_PATH = {_js(f'/qr/{token}/record')};"
        + _UPLOADER_SCRIPT
    )
    return _page("Add an Audio Memory", body, script)


__all__ = [
    "render_landing",
    "render_not_found",
    "render_admin_login",
    "render_dashboard",
    "render_player",
    "render_sign_in",
    "render_uploader",
]
