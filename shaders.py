# =============================
# GLSL shaders — instanced image particles
# =============================

PARTICLE_VERTEX_SHADER = """
#version 330

// Shared quad template
in vec3 in_position;
in vec2 in_uv;

// Per-instance
in uint in_pindex;
in vec3 in_offset;
in float in_angle;

out vec2 v_uv;
out vec2 v_puv;
out float v_grey;

uniform mat4 mvp;
uniform float uTime;
uniform float uRandom;
uniform float uDepth;
uniform float uSize;
uniform vec2 uTextureSize;
uniform sampler2D uTexture;
uniform vec3 uTouch;        // xy = image pixel coords, z = strength 0..1
uniform float uTouchRadius;

float random(float n) {
    return fract(sin(n) * 43758.5453123);
}

// 1D value noise
float noise(float x) {
    float i = floor(x);
    float f = fract(x);
    return mix(random(i), random(i + 1.0), smoothstep(0.0, 1.0, f));
}

void main() {
    float fi = float(in_pindex);

    // Sample at the pixel centre
    vec2 puv = (in_offset.xy + 0.5) / uTextureSize;
    vec4 color = texture(uTexture, puv);
    float grey = dot(color.rgb, vec3(0.21, 0.71, 0.07));

    vec3 displaced = in_offset;
    displaced.xy += vec2(random(fi) - 0.5, random(in_offset.x + fi) - 0.5) * uRandom;
    float rndz = random(fi) + noise(fi * 0.1 + uTime * 0.1);
    displaced.z += rndz * (random(fi) * 2.0 * uDepth);

    // Push particles away from the pointer along their own angle
    float touch = uTouch.z * (1.0 - smoothstep(0.0, uTouchRadius,
                                               distance(in_offset.xy, uTouch.xy)));
    displaced.z += touch * 20.0 * rndz;
    displaced.x += cos(in_angle) * touch * 20.0 * rndz;
    displaced.y += sin(in_angle) * touch * 20.0 * rndz;

    // Centre the grid on the origin
    displaced.xy -= uTextureSize * 0.5;

    float psize = (noise(fi + uTime) + 2.0) * max(grey, 0.2) * uSize;

    v_uv = in_uv;
    v_puv = puv;
    v_grey = grey;
    gl_Position = mvp * vec4(displaced + in_position * psize, 1.0);
}
"""

PARTICLE_FRAGMENT_SHADER = """
#version 330

in vec2 v_uv;
in vec2 v_puv;
in float v_grey;

out vec4 frag_color;

uniform sampler2D uTexture;

void main() {
    vec4 color = texture(uTexture, v_puv);

    // Soft round sprite
    float dist = 0.5 - distance(v_uv, vec2(0.5));
    float alpha = smoothstep(0.0, 0.3, dist);

    frag_color = vec4(color.rgb, alpha * max(v_grey, 0.35));
}
"""
