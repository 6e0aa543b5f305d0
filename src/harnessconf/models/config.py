"""テストハーネス設定モデル。

各フィールドのデフォルト値・環境変数・ドキュメントセクションは Setting で宣言する。
Python レベルのデフォルトはゼロ値であり、実際のデフォルトは解決時のデフォルトパスで代入される。
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

from harnessconf.config import ConfigSchema, Int32, Int64, Setting


class OCMConfig(ConfigSchema):
    """OpenShift Cluster Manager 接続設定。"""

    token: Annotated[
        str, Setting(env="OCM_TOKEN", section="Required", secret=True)
    ] = ""
    env: Annotated[
        str, Setting(default="prod", env="OSD_ENV", section="Environment")
    ] = ""
    url: Annotated[
        str,
        Setting(
            default="https://api.openshift.com", env="OCM_URL", section="Environment"
        ),
    ] = ""
    debug: Annotated[
        bool, Setting(default="false", env="DEBUG_OSD", section="Environment")
    ] = False


class ClusterConfig(ConfigSchema):
    """テスト対象クラスタの設定。"""

    id: Annotated[str, Setting(env="CLUSTER_ID", section="Cluster")] = ""
    name: Annotated[
        str, Setting(default="__RND_8__", env="CLUSTER_NAME", section="Cluster")
    ] = ""
    version: Annotated[str, Setting(env="CLUSTER_VERSION", section="Cluster")] = ""
    multi_az: Annotated[
        bool, Setting(default="false", env="MULTI_AZ", section="Cluster")
    ] = False
    expiry_in_minutes: Annotated[
        Int32,
        Setting(default="210", env="CLUSTER_EXPIRY_IN_MINUTES", section="Cluster"),
    ] = 0
    destroy_after_test: Annotated[
        bool, Setting(default="false", env="DESTROY_CLUSTER", section="Cluster")
    ] = False


class TestsConfig(ConfigSchema):
    """テスト選択と実行の設定。"""

    # pytest の収集対象から除外する
    __test__ = False

    polling_timeout: Annotated[
        Int32, Setting(default="30", env="POLLING_TIMEOUT", section="Tests")
    ] = 0
    ginkgo_skip: Annotated[str, Setting(env="GINKGO_SKIP", section="Tests")] = ""
    ginkgo_focus: Annotated[str, Setting(env="GINKGO_FOCUS", section="Tests")] = ""
    test_harnesses: Annotated[
        list[str], Setting(env="TEST_HARNESSES", section="Tests")
    ] = Field(default_factory=list)
    clean_check_runs: Annotated[
        Int32, Setting(default="2", env="CLEAN_CHECK_RUNS", section="Tests")
    ] = 0


class AddonsConfig(ConfigSchema):
    """アドオンのインストールとテストハーネスの設定。"""

    ids: Annotated[list[str], Setting(env="ADDON_IDS", section="Addons")] = Field(
        default_factory=list
    )
    test_harnesses: Annotated[
        list[str], Setting(env="ADDON_TEST_HARNESSES", section="Addons")
    ] = Field(default_factory=list)
    test_user: Annotated[
        str,
        Setting(
            default="system:serviceaccount:%s:cluster-admin",
            env="ADDON_TEST_USER",
            section="Addons",
        ),
    ] = ""
    poll_timeout_seconds: Annotated[
        Int32, Setting(default="1800", env="ADDON_POLL_TIMEOUT", section="Addons")
    ] = 0
    skip_addon_list: Annotated[
        bool, Setting(default="true", env="SKIP_ADDON_LIST", section="Addons")
    ] = False
    # アドオン名 → パラメータ。オーバーレイからのみ設定される
    parameters: dict[str, dict[str, str]] = Field(default_factory=dict)


class KubeconfigConfig(ConfigSchema):
    """既存クラスタへの接続に使う kubeconfig。"""

    path: Annotated[str, Setting(env="TEST_KUBECONFIG", section="Kubeconfig")] = ""
    # 実行時にファイルから読み込まれる内容
    contents: str = ""


class UpgradeConfig(ConfigSchema):
    """アップグレードテストの設定。"""

    release_stream: Annotated[
        str, Setting(env="UPGRADE_RELEASE_STREAM", section="Upgrade")
    ] = ""
    image: Annotated[str, Setting(env="UPGRADE_IMAGE", section="Upgrade")] = ""
    run_pre_upgrade_tests: Annotated[
        bool, Setting(default="false", env="RUN_PRE_UPGRADE_TESTS", section="Upgrade")
    ] = False


class PrometheusConfig(ConfigSchema):
    """メトリクス照会用 Prometheus エンドポイント。HTTP クライアントが参照する。"""

    address: Annotated[
        str, Setting(env="PROMETHEUS_ADDRESS", section="Prometheus")
    ] = ""
    bearer_token: Annotated[
        str,
        Setting(env="PROMETHEUS_BEARER_TOKEN", section="Prometheus", secret=True),
    ] = ""


class HarnessConfig(ConfigSchema):
    """テストハーネス全体の設定。

    HarnessConfig() はゼロ値で確保され、resolve_config() で構築される。
    """

    # 実行設定
    report_dir: Annotated[
        str, Setting(default="__TMP_DIR__", env="REPORT_DIR", section="Tests")
    ] = ""
    suffix: Annotated[
        str, Setting(default="__RND_3__", env="SUFFIX", section="Environment")
    ] = ""
    dry_run: Annotated[
        bool, Setting(default="false", env="DRY_RUN", section="Tests")
    ] = False
    job_name: Annotated[str, Setting(env="JOB_NAME", section="Environment")] = ""
    job_id: Annotated[
        Int64, Setting(default="-1", env="BUILD_ID", section="Environment")
    ] = 0

    # セクション
    ocm: OCMConfig = Field(default_factory=OCMConfig)
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    tests: TestsConfig = Field(default_factory=TestsConfig)
    addons: AddonsConfig = Field(default_factory=AddonsConfig)
    kubeconfig: KubeconfigConfig = Field(default_factory=KubeconfigConfig)
    upgrade: UpgradeConfig = Field(default_factory=UpgradeConfig)
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig)
