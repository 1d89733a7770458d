"""Shell integration snippets printed by `git workty init`."""

SUPPORTED_SHELLS = ("bash", "zsh", "fish", "powershell")

# The picker draws on stderr, so `pick` calls keep stderr attached to the terminal.

_POSIX_CD_FUNCTIONS = r'''# wcd - fuzzy select and cd to a worktree
wcd() {
    local dir
    dir="$(git workty pick)"
    if [ -n "$dir" ] && [ -d "$dir" ]; then
        cd "$dir" || return 1
    fi
}

# wnew - create new worktree and cd into it
wnew() {
    if [ -z "$1" ]; then
        echo "Usage: wnew <branch-name>" >&2
        return 1
    fi
    local dir
    dir="$(git workty new "$@" --print-path)"
    if [ -n "$dir" ] && [ -d "$dir" ]; then
        cd "$dir" || return 1
    fi
}

# wgo - go to a worktree by name
wgo() {
    if [ -z "$1" ]; then
        echo "Usage: wgo <worktree-name>" >&2
        return 1
    fi
    local dir
    dir="$(git workty go "$1" 2>/dev/null)"
    if [ -n "$dir" ] && [ -d "$dir" ]; then
        cd "$dir" || return 1
    else
        echo "Worktree not found: $1" >&2
        return 1
    fi
}

'''

_POSIX_GIT_WRAPPER = r'''# git wrapper that auto-cds for workty commands
git() {
    if [ "$1" = "workty" ]; then
        local dir
        case "$2" in
            go)
                dir="$(command git workty go "${@:3}" 2>/dev/null)"
                ;;
            pick)
                dir="$(command git workty pick)"
                ;;
            new)
                dir="$(command git workty new "${@:3}" --print-path)"
                ;;
            *)
                command git "$@"
                return
                ;;
        esac
        if [ -n "$dir" ] && [ -d "$dir" ]; then
            cd "$dir"
        else
            command git "$@"
        fi
    else
        command git "$@"
    fi
}

'''

_FISH_CD_FUNCTIONS = r'''# wcd - fuzzy select and cd to a worktree
function wcd
    set -l dir (git workty pick)
    if test -n "$dir" -a -d "$dir"
        cd "$dir"
    end
end

# wnew - create new worktree and cd into it
function wnew
    if test (count $argv) -eq 0
        echo "Usage: wnew <branch-name>" >&2
        return 1
    end
    set -l dir (git workty new $argv --print-path)
    if test -n "$dir" -a -d "$dir"
        cd "$dir"
    end
end

# wgo - go to a worktree by name
function wgo
    if test (count $argv) -eq 0
        echo "Usage: wgo <worktree-name>" >&2
        return 1
    end
    set -l dir (git workty go $argv[1] 2>/dev/null)
    if test -n "$dir" -a -d "$dir"
        cd "$dir"
    else
        echo "Worktree not found: $argv[1]" >&2
        return 1
    end
end

'''

_FISH_GIT_WRAPPER = r'''# git wrapper that auto-cds for workty commands
function git --wraps git
    if test "$argv[1]" = "workty"
        set -l dir
        switch $argv[2]
            case go
                set dir (command git workty go $argv[3..] 2>/dev/null)
            case pick
                set dir (command git workty pick)
            case new
                set dir (command git workty new $argv[3..] --print-path)
            case '*'
                command git $argv
                return
        end
        if test -n "$dir" -a -d "$dir"
            cd "$dir"
        else
            command git $argv
        end
    else
        command git $argv
    end
end

'''

_POWERSHELL_CD_FUNCTIONS = r'''# wcd - fuzzy select and cd to a worktree
function wcd {
    $dir = git workty pick
    if ($dir -and (Test-Path $dir)) {
        Set-Location $dir
    }
}

# wnew - create new worktree and cd into it
function wnew {
    param([Parameter(Mandatory=$true)][string]$Name)
    $dir = git workty new $Name --print-path
    if ($dir -and (Test-Path $dir)) {
        Set-Location $dir
    }
}

# wgo - go to a worktree by name
function wgo {
    param([Parameter(Mandatory=$true)][string]$Name)
    $dir = git workty go $Name 2>$null
    if ($dir -and (Test-Path $dir)) {
        Set-Location $dir
    } else {
        Write-Error "Worktree not found: $Name"
    }
}

'''

_POWERSHELL_GIT_WRAPPER = '''# Note: a git wrapper is not provided for PowerShell.
# Use the wcd, wnew and wgo functions directly.

'''

_SNIPPETS = {
    "bash": ("bash", _POSIX_CD_FUNCTIONS, _POSIX_GIT_WRAPPER),
    "zsh": ("zsh", _POSIX_CD_FUNCTIONS, _POSIX_GIT_WRAPPER),
    "fish": ("fish", _FISH_CD_FUNCTIONS, _FISH_GIT_WRAPPER),
    "powershell": ("PowerShell", _POWERSHELL_CD_FUNCTIONS, _POWERSHELL_GIT_WRAPPER),
    "pwsh": ("PowerShell", _POWERSHELL_CD_FUNCTIONS, _POWERSHELL_GIT_WRAPPER),
}


def generate_init(shell: str, wrap_git: bool = False, no_cd: bool = False) -> str:
    """Shell integration script for ``shell``.

    Args:
        shell: bash, zsh, fish or powershell (pwsh)
        wrap_git: Also define a ``git`` function that cds for go/pick/new
        no_cd: Leave out the wcd/wnew/wgo helpers

    Returns:
        Script text; a comment line for unsupported shells
    """
    if shell not in _SNIPPETS:
        return f"# Unsupported shell: {shell}\n"

    label, cd_functions, git_wrapper = _SNIPPETS[shell]
    output = f"# git-workty shell integration for {label}\n\n"
    if not no_cd:
        output += cd_functions
    if wrap_git:
        output += git_wrapper
    return output
