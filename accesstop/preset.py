# coding: utf-8

"""accesstop.preset is a submodule to provide log format templates
for frequently used access log formats."""

# predefined in nginx (ngx_http_log_module)
COMBINED = ('$remote_addr - $remote_user [$time_local] '
            '"$request" $status $body_bytes_sent '
            '"$http_referer" "$http_user_agent"')

# combined with $http_x_forwarded_for in place of
# the referer and user agent, as "common" of ngxtop
COMMON = ('$remote_addr - $remote_user [$time_local] '
          '"$request" $status $body_bytes_sent '
          '"$http_x_forwarded_for"')

# "main" format in the default nginx.conf
MAIN = ('$remote_addr - $remote_user [$time_local] '
        '"$request" $status $body_bytes_sent '
        '"$http_referer" "$http_user_agent" "$http_x_forwarded_for"')

PRESETS = {
    "combined": COMBINED,
    "common": COMMON,
    "main": MAIN,
}


def preset_names():
    """Returns:
        list of str: names of the preset formats, sorted.
    """
    return sorted(PRESETS)
