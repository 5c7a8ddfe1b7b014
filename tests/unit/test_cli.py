"""Unit tests for the command-line entry point."""

import pytest
import yaml

from resalloc_kubernetes.main import build_parser, build_request, main
from resalloc_kubernetes.models.errors import GatewayError, InvalidRequest
from resalloc_kubernetes.models.resources import ResourceKind

POD = ResourceKind.POD
PVC = ResourceKind.PERSISTENT_VOLUME_CLAIM

ADD_ARGS = [
    "add",
    "--image-tag",
    "openeuler/openeuler:22.03",
    "--cpu-resource",
    "100m",
    "--memory-resource",
    "500Mi",
]

VOLUME_ARGS = [
    "--additional-volume-size",
    "10Gi",
    "--additional-volume-class",
    "test_pvc",
    "--additional-volume-mount-path",
    "/etc/test_mount",
]


class TestParser:
    def test_add_defaults(self):
        """Test add options fall back to their defaults."""
        args = build_parser().parse_args(ADD_ARGS)
        assert args.command == "add"
        assert args.timeout == 90
        assert args.node_selector == []
        assert args.additional_labels == []
        assert args.secret is None
        assert args.dry_run is False

    def test_repeated_options(self):
        """Test repeatable options collect every value in order."""
        args = build_parser().parse_args(
            ADD_ARGS
            + ["--node-selector", "disk=ssd", "--node-selector", "zone=a"]
            + ["--additional-labels", "team=copr"]
        )
        assert args.node_selector == ["disk=ssd", "zone=a"]
        assert args.additional_labels == ["team=copr"]

    def test_namespace_before_subcommand(self):
        """Test --namespace is accepted before the subcommand."""
        args = build_parser().parse_args(["--namespace", "copr"] + ADD_ARGS)
        assert args.namespace == "copr"

    def test_namespace_after_subcommand(self):
        """Test --namespace is accepted after the subcommand."""
        args = build_parser().parse_args(ADD_ARGS + ["--namespace", "copr"])
        assert args.namespace == "copr"

    def test_secret_parsed(self):
        """Test --secret is parsed into a SecretMount."""
        args = build_parser().parse_args(
            ADD_ARGS + ["--secret", "/home/copr/server.crt:copr-secrets:server-crt"]
        )
        assert args.secret.name == "copr-secrets"

    def test_malformed_secret_exits_2(self):
        """Test a malformed --secret is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(ADD_ARGS + ["--secret", "only-two:parts"])
        assert exc_info.value.code == 2

    def test_missing_image_exits_2(self):
        """Test add without --image-tag is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["add", "--cpu-resource", "1"])
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("value", ["-5", "soon"])
    def test_invalid_timeout_exits_2(self, value):
        """Test a negative or non-numeric --timeout is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(ADD_ARGS + ["--timeout", value])
        assert exc_info.value.code == 2

    def test_zero_timeout_accepted(self):
        """Test --timeout 0 is accepted."""
        assert build_parser().parse_args(ADD_ARGS + ["--timeout", "0"]).timeout == 0

    def test_delete_name_from_environment(self, monkeypatch):
        """Test delete takes --name from RESALLOC_NAME."""
        monkeypatch.setenv("RESALLOC_NAME", "10.0.0.12")
        args = build_parser().parse_args(["delete"])
        assert args.name == "10.0.0.12"

    def test_delete_requires_name(self, monkeypatch):
        """Test delete without --name or RESALLOC_NAME is a usage error."""
        monkeypatch.delenv("RESALLOC_NAME", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["delete"])
        assert exc_info.value.code == 2


class TestBuildRequest:
    def test_request_fields(self):
        """Test parsed arguments map onto the ProvisionRequest."""
        args = build_parser().parse_args(
            ADD_ARGS + VOLUME_ARGS + ["--privileged", "--timeout", "30"]
        )
        request = build_request(args)
        assert request.image == "openeuler/openeuler:22.03"
        assert request.namespace == "default"
        assert request.timeout == 30
        assert request.privileged is True
        assert request.volume.storage_class == "test_pvc"

    def test_partial_volume_rejected(self):
        """Test a partial set of volume options is rejected."""
        args = build_parser().parse_args(ADD_ARGS + ["--additional-volume-size", "10Gi"])
        with pytest.raises(InvalidRequest):
            build_request(args)


class TestMain:
    def test_no_command_exits_2(self, manager, capsys):
        """Test help is printed and exit code is 2 without a subcommand."""
        assert main([], manager=manager) == 2
        assert "usage" in capsys.readouterr().err

    def test_add_prints_address(self, manager, fake_gateway, capsys):
        """Test add prints only the pod IP on stdout."""
        assert main(ADD_ARGS, manager=manager) == 0
        assert capsys.readouterr().out == "10.0.0.12\n"
        assert fake_gateway.closed

    def test_dry_run_prints_manifests(self, manager, fake_gateway, capsys):
        """Test dry run prints the claim and pod YAML without cluster calls."""
        exit_code = main(ADD_ARGS + VOLUME_ARGS + ["--dry-run"], manager=manager)
        assert exit_code == 0
        assert fake_gateway.calls == []

        out = capsys.readouterr().out
        assert out.startswith("---\n")
        documents = list(yaml.safe_load_all(out))
        assert [doc["kind"] for doc in documents] == ["PersistentVolumeClaim", "Pod"]
        assert documents[1]["metadata"]["namespace"] == "default"

    def test_dry_run_uses_namespace_after_subcommand(self, manager, capsys):
        """Test dry-run manifests use the namespace given after the subcommand."""
        exit_code = main(ADD_ARGS + ["--dry-run", "--namespace", "copr"], manager=manager)
        assert exit_code == 0
        (pod,) = yaml.safe_load_all(capsys.readouterr().out)
        assert pod["metadata"]["namespace"] == "copr"

    def test_partial_volume_exits_2(self, manager, fake_gateway, capsys):
        """Test partial volume options exit 2 before any cluster call."""
        exit_code = main(ADD_ARGS + ["--additional-volume-size", "10Gi"], manager=manager)
        assert exit_code == 2
        assert fake_gateway.calls == []
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "--additional-volume-class" in captured.err

    def test_negative_timeout_submits_nothing(self, manager, fake_gateway):
        """Test a negative --timeout fails before any cluster call."""
        with pytest.raises(SystemExit) as exc_info:
            main(ADD_ARGS + ["--timeout", "-5"], manager=manager)
        assert exc_info.value.code == 2
        assert fake_gateway.calls == []

    def test_provisioning_failure_exits_1(self, manager, fake_gateway, capsys):
        """Test a provisioning failure exits 1 and reports the cause on stderr."""
        fake_gateway.fail("create", POD, GatewayError("Forbidden", status=403))
        assert main(ADD_ARGS, manager=manager) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Forbidden" in captured.err

    def test_delete(self, manager, fake_gateway, pod_snapshot, capsys):
        """Test delete removes the owned pod and prints nothing."""
        fake_gateway.list_result = [
            pod_snapshot("resalloc-a", {"app": "resalloc-kubernetes"}),
        ]
        assert main(["delete", "--name", "10.0.0.12"], manager=manager) == 0
        assert fake_gateway.calls_to("delete") == [("delete", POD, "resalloc-a")]
        assert capsys.readouterr().out == ""

    def test_delete_not_found_exits_1(self, manager, capsys):
        """Test delete exits 1 when no pod matches."""
        assert main(["delete", "--name", "10.0.0.99"], manager=manager) == 1
        assert "10.0.0.99" in capsys.readouterr().err
