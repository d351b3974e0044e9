import os
import unittest
from unittest import mock

from s3_filesystem.errors import ConfigurationError, ErrorKind, classify_error
from s3_filesystem.models import BucketConfig
from s3_filesystem.paths import PathResolver, parse_bucket_prefix
from s3_filesystem.urls import HostnameBuilder, parse_bucket_host_name


class ParseBucketPrefixTests(unittest.TestCase):
    def test_empty_and_root_prefixes_normalize_to_empty(self):
        self.assertEqual("", parse_bucket_prefix(None))
        self.assertEqual("", parse_bucket_prefix(""))
        self.assertEqual("", parse_bucket_prefix("/"))
        self.assertEqual("", parse_bucket_prefix("\\"))
        self.assertEqual("", parse_bucket_prefix("//"))
        self.assertEqual("", parse_bucket_prefix("///"))
        self.assertEqual("", parse_bucket_prefix("\\\\"))

    def test_strips_leading_and_enforces_trailing_separator(self):
        self.assertEqual("uploads/", parse_bucket_prefix("//uploads"))
        self.assertEqual("uploads/", parse_bucket_prefix("uploads"))
        self.assertEqual("uploads/", parse_bucket_prefix("/uploads"))
        self.assertEqual("uploads/", parse_bucket_prefix("uploads/"))
        self.assertEqual("site/media/", parse_bucket_prefix("\\site\\media"))


class ParseBucketHostNameTests(unittest.TestCase):
    def test_adds_scheme_and_trailing_slash(self):
        self.assertEqual("http://cdn.example.com/", parse_bucket_host_name("cdn.example.com"))

    def test_keeps_existing_scheme(self):
        self.assertEqual(
            "https://cdn.example.com/",
            parse_bucket_host_name("https://cdn.example.com/"),
        )
        self.assertEqual(
            "https://cdn.example.com/",
            parse_bucket_host_name("https://cdn.example.com"),
        )

    def test_scheme_check_is_a_plain_prefix_match(self):
        self.assertEqual("httpcdn.example.com/", parse_bucket_host_name("httpcdn.example.com"))


class PathResolverTests(unittest.TestCase):
    def setUp(self):
        self.resolver = PathResolver("uploads/", "http://cdn.test/")

    def test_empty_and_root_paths_resolve_to_prefix(self):
        self.assertEqual("uploads/", self.resolver.resolve(None))
        self.assertEqual("uploads/", self.resolver.resolve(""))
        self.assertEqual("uploads/", self.resolver.resolve("/"))
        self.assertEqual("uploads/", self.resolver.resolve("\\"))

    def test_normalizes_backslashes(self):
        self.assertEqual("uploads/a/b.txt", self.resolver.resolve("\\a\\b.txt"))

    def test_strips_every_leading_separator(self):
        self.assertEqual("uploads/a.txt", self.resolver.resolve("/a.txt"))
        self.assertEqual("uploads/a.txt", self.resolver.resolve("//a.txt"))
        self.assertEqual("uploads/a.txt", self.resolver.resolve("\\\\a.txt"))

    def test_strips_host_name_case_insensitively(self):
        self.assertEqual("uploads/a.txt", self.resolver.resolve("HTTP://CDN.test/a.txt"))
        self.assertEqual("uploads/", self.resolver.resolve("http://cdn.test/"))

    def test_never_returns_leading_separator(self):
        for path in ("a", "/a", "\\a", "/", "", "http://cdn.test/a", "a/b/"):
            self.assertFalse(self.resolver.resolve(path).startswith("/"), path)

    def test_normalized_input_is_stable(self):
        for path in ("a.txt", "a/b/c.txt", "dir/"):
            resolved = self.resolver.resolve(path)
            self.assertEqual(resolved, "uploads/" + path)
            self.assertEqual(path, resolved[len("uploads/"):])

    def test_empty_prefix_and_path_resolve_to_empty_key(self):
        resolver = PathResolver("", "http://cdn.test/")

        self.assertEqual("", resolver.resolve(""))
        self.assertEqual("a.txt", resolver.resolve("/a.txt"))
        self.assertEqual("a.txt", resolver.resolve("//a.txt"))


class HostnameBuilderTests(unittest.TestCase):
    def setUp(self):
        resolver = PathResolver("media/", "http://cdn.test/")
        self.builder = HostnameBuilder("http://cdn.test/", resolver)

    def test_url_for_joins_host_and_key(self):
        self.assertEqual("http://cdn.test/media/x.jpg", self.builder.url_for("x.jpg"))
        self.assertEqual("http://cdn.test/media/", self.builder.url_for(""))

    def test_relative_path_keeps_absolute_urls(self):
        self.assertEqual(
            "https://elsewhere.test/x.jpg",
            self.builder.relative_path("https://elsewhere.test/x.jpg"),
        )
        self.assertEqual("http://cdn.test/media/x.jpg", self.builder.relative_path("x.jpg"))
        self.assertEqual("", self.builder.relative_path(None))


class BucketConfigTests(unittest.TestCase):
    def test_create_normalizes_host_and_prefix(self):
        config = BucketConfig.create(
            bucket_name="bucket",
            bucket_host_name="cdn.test",
            bucket_prefix="/media",
        )

        self.assertEqual("http://cdn.test/", config.bucket_host_name)
        self.assertEqual("media/", config.bucket_prefix)
        self.assertEqual("", config.region)
        self.assertIsNone(config.endpoint_url)

    def test_create_requires_bucket_and_host(self):
        with self.assertRaises(ConfigurationError) as ctx:
            BucketConfig.create(bucket_name="", bucket_host_name="cdn.test")
        self.assertEqual(ErrorKind.CONFIGURATION, classify_error(ctx.exception))

        with self.assertRaises(ConfigurationError):
            BucketConfig.create(bucket_name="bucket", bucket_host_name="")

    def test_slash_only_prefix_never_yields_leading_separator(self):
        config = BucketConfig.create(
            bucket_name="bucket",
            bucket_host_name="cdn.test",
            bucket_prefix="//",
        )
        resolver = PathResolver(config.bucket_prefix, config.bucket_host_name)

        self.assertEqual("", config.bucket_prefix)
        self.assertEqual("x.jpg", resolver.resolve("x.jpg"))

    def test_config_is_immutable(self):
        config = BucketConfig.create(bucket_name="bucket", bucket_host_name="cdn.test")

        with self.assertRaises(AttributeError):
            config.bucket_name = "other"

    def test_from_env(self):
        env = {
            "S3FS_BUCKET_NAME": "bucket",
            "S3FS_BUCKET_HOST_NAME": "https://cdn.test",
            "S3FS_BUCKET_PREFIX": "media",
            "AWS_DEFAULT_REGION": "us-east-1",
            "AWS_ACCESS_KEY_ID": "access",
            "AWS_SECRET_ACCESS_KEY": "secret",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = BucketConfig.from_env()

        self.assertEqual("bucket", config.bucket_name)
        self.assertEqual("https://cdn.test/", config.bucket_host_name)
        self.assertEqual("media/", config.bucket_prefix)
        self.assertEqual("us-east-1", config.region)
        self.assertEqual("secret", config.secret_key)

    def test_from_env_without_bucket_fails(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigurationError):
                BucketConfig.from_env()


if __name__ == "__main__":
    unittest.main()
