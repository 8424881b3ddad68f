from __future__ import annotations

def _pick_glsl_version(ctx_version_code: int) -> int:
    """Pick a GLSL version compatible with the active OpenGL context.

    - For OpenGL >= 3.3: use GLSL 330
    - For OpenGL >= 3.2: use GLSL 150
    """
    if ctx_version_code >= 330:
        return 330
    return 150

_VERT_BODY = """
in vec3 in_pos;
in vec3 in_norm;
in vec2 in_uv;

uniform mat4 u_proj;
uniform mat4 u_view;
uniform vec3 u_offset;  // chunk world offset

out vec3 v_world_pos;
out vec3 v_norm;
out vec2 v_uv;

void main() {
    vec3 p = in_pos + u_offset;
    v_world_pos = p;
    v_norm = in_norm;
    v_uv = in_uv;
    gl_Position = u_proj * u_view * vec4(p, 1.0);
}
"""

_FRAG_BODY = """in vec3 v_world_pos;
in vec3 v_norm;
in vec2 v_uv;

uniform sampler2D u_atlas;
uniform vec3 u_light_dir;
uniform vec3 u_cam_pos;
uniform float u_fog_start;
uniform float u_fog_end;

out vec4 f_color;

void main() {
    vec3 n = normalize(v_norm);
    vec3 l = normalize(u_light_dir);
    float diff = max(dot(n, l), 0.0);

    vec3 base = texture(u_atlas, v_uv).rgb;

    float ambient = 0.45;
    vec3 col = base * (ambient + 0.75 * diff);

    // Fog by horizontal distance
    float dist = length(v_world_pos.xz - u_cam_pos.xz);
    float fog_amount = smoothstep(u_fog_start, u_fog_end, dist);
    vec3 fog_col = vec3(0.70, 0.80, 0.92);
    col = mix(col, fog_col, fog_amount);

    f_color = vec4(col, 1.0);
}"""

def shader_sources(ctx_version_code: int) -> tuple[str, str]:
    ver = _pick_glsl_version(ctx_version_code)
    prefix = f"#version {ver}\n"
    return prefix + _VERT_BODY, prefix + _FRAG_BODY
