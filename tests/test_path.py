import pytest

from otaserve.errors import RequestError
from otaserve.http.path import basename, normalizePath


@pytest.mark.parametrize(
	"target,expected",
	[
		("/", "/"),
		("/app.ipa", "/app.ipa"),
		("//app.ipa", "/app.ipa"),
		("///a//b/", "/a/b"),
		("/./app.ipa", "/app.ipa"),
		("/My%20App.ipa", "/My App.ipa"),
		("/app.ipa?download=1", "/app.ipa"),
		("/app.ipa#top", "/app.ipa"),
		("http://192.168.1.20:8000/manifest.json", "/manifest.json"),
		("/%2e/app.ipa", "/app.ipa"),
		("/%252e%252e/app.ipa", "/%2e%2e/app.ipa"),
	],
)
def test_normalize(target: str, expected: str):
	assert normalizePath(target) == expected


@pytest.mark.parametrize(
	"target",
	[
		"",
		"/../etc/passwd",
		"/files/../../etc/passwd",
		"/%2e%2e/etc/passwd",
		"/%2E%2E%2Fetc%2Fpasswd",
		"/..",
		"/a%00.ipa",
		"/..%5c..%5cwindows",
		"/%ff%fe",
	],
)
def test_normalize_rejects(target: str):
	with pytest.raises(RequestError) as e:
		normalizePath(target)
	assert e.value.status == 400


def test_basename():
	assert basename("/app.ipa") == "app.ipa"
	assert basename("/") is None
	assert basename("/a/app.ipa") is None


# EOF
